"""
RefreshToken model: the ledger of issued refresh tokens, so we can revoke and rotate them
Fields:
- token (unique) - the signed refresh token string
- user_id (String(36)) - FK to users.id
- is_revoked (bool) - one-way flag, never reset
- created_at, expires_at (expiry fixed at issuance)
"""
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from models.base_model import BaseModel, Base


class RefreshToken(BaseModel, Base):
    __tablename__ = "refresh_tokens"

    token = Column(String(512), unique=True, nullable=False)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    is_revoked = Column(Boolean, default=False, nullable=False)
    expires_at = Column(DateTime, nullable=False)

    user = relationship("User", back_populates="refresh_tokens")

    def __init__(self, *args, **kwargs):
        kwargs.setdefault("is_revoked", False)
        super().__init__(*args, **kwargs)

    def __repr__(self):
        return f"<RefreshToken id={self.id} user_id={self.user_id} revoked={self.is_revoked}>"
