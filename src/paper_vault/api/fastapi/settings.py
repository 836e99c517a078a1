from pydantic import BaseModel, Field


class ApiConfig(BaseModel):
    prefix: str = "/api"
    cors_origins: list[str] | None = None
    public_page_size: int = Field(default=20, ge=1)
    admin_page_size: int = Field(default=10, ge=1)
    max_page_size: int = Field(default=100, ge=1)
    # Allowance for multipart boundaries and form fields on top of the file itself
    multipart_overhead_bytes: int = Field(default=64 * 1024, ge=0)
