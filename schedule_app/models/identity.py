from pydantic import BaseModel, ConfigDict

LOCAL_UID = "local"


class Identity(BaseModel):
    """The signed-in user as seen by the calendar; ``uid`` namespaces stored data."""

    model_config = ConfigDict(frozen=True)

    uid: str
    email: str | None = None


LOCAL_IDENTITY = Identity(uid=LOCAL_UID)
