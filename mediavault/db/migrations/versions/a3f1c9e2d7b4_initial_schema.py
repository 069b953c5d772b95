"""Initial schema: users, assets, albums, shared links, activity, tombstones

Revision ID: a3f1c9e2d7b4
Revises:
Create Date: 2026-10-19 09:12:44.518203

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = 'a3f1c9e2d7b4'
down_revision = None
branch_labels = None
depends_on = None

asset_type = sa.Enum('image', 'video', 'other', name='assettype')
album_role = sa.Enum('viewer', 'editor', 'owner', name='albumrole')


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_created_at', 'users', ['created_at'])
    op.create_index('ix_users_updated_at', 'users', ['updated_at'])
    op.create_index('ix_users_deleted_at', 'users', ['deleted_at'])

    op.create_table(
        'assets',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('owner_id', sa.Uuid(), nullable=False),
        sa.Column('checksum', sa.String(length=40), nullable=False),
        sa.Column('type', asset_type, nullable=False),
        sa.Column('live_photo_pair_id', sa.Uuid(), nullable=True),
        sa.Column('device_id', sa.String(length=255), nullable=True),
        sa.Column('device_asset_id', sa.String(length=255), nullable=True),
        sa.Column('original_filename', sa.String(length=255), nullable=False),
        sa.Column('content_type', sa.String(length=100), nullable=False),
        sa.Column('file_size', sa.BigInteger(), nullable=False),
        sa.Column('file_created_at', sa.DateTime(), nullable=True),
        sa.Column('file_modified_at', sa.DateTime(), nullable=True),
        sa.Column('duration', sa.String(length=32), nullable=True),
        sa.Column('is_favorite', sa.Boolean(), nullable=False),
        sa.Column('is_archived', sa.Boolean(), nullable=False),
        sa.Column('storage_locator', sa.String(length=512), nullable=False),
        sa.Column('thumbnail_locator', sa.String(length=512), nullable=True),
        sa.Column('sidecar_locator', sa.String(length=512), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['live_photo_pair_id'], ['assets.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_assets_id', 'assets', ['id'])
    op.create_index('ix_assets_owner_id', 'assets', ['owner_id'])
    op.create_index('ix_assets_checksum', 'assets', ['checksum'])
    op.create_index('ix_assets_created_at', 'assets', ['created_at'])
    op.create_index('ix_assets_updated_at', 'assets', ['updated_at'])
    op.create_index('ix_assets_deleted_at', 'assets', ['deleted_at'])
    op.create_index('ix_assets_owner_updated', 'assets', ['owner_id', 'updated_at', 'id'])
    op.create_index('ix_assets_owner_device', 'assets', ['owner_id', 'device_id', 'device_asset_id'])
    op.create_index(
        'uq_assets_owner_checksum',
        'assets',
        ['owner_id', 'checksum'],
        unique=True,
        postgresql_where=sa.text('deleted_at IS NULL'),
        sqlite_where=sa.text('deleted_at IS NULL'),
    )

    op.create_table(
        'albums',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('owner_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_activity_enabled', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_albums_id', 'albums', ['id'])
    op.create_index('ix_albums_owner_id', 'albums', ['owner_id'])
    op.create_index('ix_albums_created_at', 'albums', ['created_at'])
    op.create_index('ix_albums_updated_at', 'albums', ['updated_at'])
    op.create_index('ix_albums_deleted_at', 'albums', ['deleted_at'])

    op.create_table(
        'album_assets',
        sa.Column('album_id', sa.Uuid(), nullable=False),
        sa.Column('asset_id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['album_id'], ['albums.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['asset_id'], ['assets.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('album_id', 'asset_id'),
    )
    op.create_index('ix_album_assets_asset_id', 'album_assets', ['asset_id'])

    op.create_table(
        'album_users',
        sa.Column('album_id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('role', album_role, nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['album_id'], ['albums.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('album_id', 'user_id'),
    )
    op.create_index('ix_album_users_user_id', 'album_users', ['user_id'])

    op.create_table(
        'shared_links',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('key', sa.String(length=64), nullable=False),
        sa.Column('owner_id', sa.Uuid(), nullable=False),
        sa.Column('album_id', sa.Uuid(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('expires_at', sa.DateTime(), nullable=True),
        sa.Column('allow_upload', sa.Boolean(), nullable=False),
        sa.Column('allow_download', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['album_id'], ['albums.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_shared_links_id', 'shared_links', ['id'])
    op.create_index('ix_shared_links_key', 'shared_links', ['key'], unique=True)
    op.create_index('ix_shared_links_owner_id', 'shared_links', ['owner_id'])
    op.create_index('ix_shared_links_album_id', 'shared_links', ['album_id'])
    op.create_index('ix_shared_links_created_at', 'shared_links', ['created_at'])
    op.create_index('ix_shared_links_updated_at', 'shared_links', ['updated_at'])

    op.create_table(
        'shared_link_assets',
        sa.Column('shared_link_id', sa.Uuid(), nullable=False),
        sa.Column('asset_id', sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(['shared_link_id'], ['shared_links.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['asset_id'], ['assets.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('shared_link_id', 'asset_id'),
    )
    op.create_index('ix_shared_link_assets_asset_id', 'shared_link_assets', ['asset_id'])

    op.create_table(
        'activities',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('album_id', sa.Uuid(), nullable=False),
        sa.Column('asset_id', sa.Uuid(), nullable=True),
        sa.Column('is_liked', sa.Boolean(), nullable=False),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['album_id'], ['albums.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['asset_id'], ['assets.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_activities_id', 'activities', ['id'])
    op.create_index('ix_activities_user_id', 'activities', ['user_id'])
    op.create_index('ix_activities_created_at', 'activities', ['created_at'])
    op.create_index('ix_activities_updated_at', 'activities', ['updated_at'])
    op.create_index('ix_activities_album_asset_user', 'activities', ['album_id', 'asset_id', 'user_id'])
    op.create_index(
        'uq_activities_asset_like',
        'activities',
        ['user_id', 'album_id', 'asset_id'],
        unique=True,
        postgresql_where=sa.text('is_liked AND asset_id IS NOT NULL'),
        sqlite_where=sa.text('is_liked AND asset_id IS NOT NULL'),
    )
    op.create_index(
        'uq_activities_album_like',
        'activities',
        ['user_id', 'album_id'],
        unique=True,
        postgresql_where=sa.text('is_liked AND asset_id IS NULL'),
        sqlite_where=sa.text('is_liked AND asset_id IS NULL'),
    )

    op.create_table(
        'asset_audits',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('asset_id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_asset_audits_asset_id', 'asset_audits', ['asset_id'])
    op.create_index('ix_asset_audits_deleted_at', 'asset_audits', ['deleted_at'])
    op.create_index('ix_asset_audits_user_deleted', 'asset_audits', ['user_id', 'deleted_at', 'asset_id'])


def downgrade() -> None:
    op.drop_table('asset_audits')
    op.drop_index('uq_activities_album_like', table_name='activities')
    op.drop_index('uq_activities_asset_like', table_name='activities')
    op.drop_table('activities')
    op.drop_table('shared_link_assets')
    op.drop_table('shared_links')
    op.drop_table('album_users')
    op.drop_table('album_assets')
    op.drop_table('albums')
    op.drop_index('uq_assets_owner_checksum', table_name='assets')
    op.drop_table('assets')
    op.drop_table('users')
    album_role.drop(op.get_bind(), checkfirst=True)
    asset_type.drop(op.get_bind(), checkfirst=True)
