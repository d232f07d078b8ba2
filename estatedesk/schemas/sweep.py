from estatedesk.schemas.camel_model import CamelModel


class SweepResultRead(CamelModel):
    name: str
    ok: bool
    affected: int = 0
    error: str | None = None
