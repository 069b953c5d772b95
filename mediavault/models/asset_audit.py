"""Asset tombstones consumed by delta sync."""
from sqlalchemy import Column, DateTime, Index, Uuid
import uuid

from mediavault.db.base import Base
from .base import utcnow


class AssetAudit(Base):
    """Records that an asset left a user's visible set at ``deleted_at``.

    Rows carry no foreign keys: the asset may already be purged when a
    client asks for the deletion.
    """

    __tablename__ = 'asset_audits'
    __table_args__ = (
        Index('ix_asset_audits_user_deleted', 'user_id', 'deleted_at', 'asset_id'),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    asset_id = Column(Uuid, nullable=False, index=True)
    user_id = Column(Uuid, nullable=False)
    deleted_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    def __repr__(self) -> str:
        return f'<AssetAudit(asset_id={self.asset_id}, user_id={self.user_id})>'
