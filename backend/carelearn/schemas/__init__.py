from carelearn.schemas.envelope import ActionError, ActionResponse

__all__ = ["ActionError", "ActionResponse"]
