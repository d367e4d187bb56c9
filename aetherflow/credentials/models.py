import enum
import uuid

from sqlalchemy import Boolean, Enum, ForeignKey, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from aetherflow.db.base import Base, TimestampMixin, UpdatedAtMixin, UUIDMixin


class Provider(str, enum.Enum):
    OPENAI = "openai"
    DEEPSEEK = "deepseek"
    MOONSHOT = "moonshot"
    CUSTOM = "custom"  # user-supplied OpenAI-compatible endpoint


class Credential(UUIDMixin, TimestampMixin, UpdatedAtMixin, Base):
    """A user's API key for one provider. AES-256-CBC encrypted at rest."""
    __tablename__ = "api_credentials"
    __table_args__ = (
        UniqueConstraint("owner_id", "provider", name="uq_credential_owner_provider"),
    )

    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False, index=True
    )
    provider: Mapped[Provider] = mapped_column(
        Enum(Provider, name="provider", values_callable=lambda e: [m.value for m in e]), nullable=False
    )
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    # Hex-encoded ciphertext and the hex IV it was produced with
    ciphertext: Mapped[str] = mapped_column(Text, nullable=False)
    nonce: Mapped[str] = mapped_column(String(32), nullable=False)
    # Only used when provider == custom
    base_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    model_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
