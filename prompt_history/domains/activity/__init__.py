from prompt_history.domains.activity.services import ActivityAction, ActivityLogService

__all__ = ["ActivityAction", "ActivityLogService"]
