"""initial schema

Revision ID: 3f1c9a7d2b10
Revises:
Create Date: 2026-10-19 10:12:44.201583

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
import sqlmodel


# revision identifiers, used by Alembic.
revision: str = '3f1c9a7d2b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


# Enum columns store member NAMES, matching SQLModel's default mapping.
collection_status = sa.Enum(
    'COLLECTED', 'TRASH_DUMPED', 'COMPLETED', name='collectionstatus')
revenue_request_status = sa.Enum(
    'PENDING', 'APPROVED', 'DECLINED', name='revenuerequeststatus')
wallet_owner_type = sa.Enum('USER', 'TRANSPORTER', name='walletownertype')
actor_role = sa.Enum('USER', 'TRANSPORTER', 'RECYCLER', 'ADMIN', name='actorrole')
audit_action = sa.Enum('CREATE', 'UPDATE', 'APPROVE',
                       'DECLINE', name='auditaction')


def _account_columns():
    return [
        sa.Column('name', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('hashed_password',
                  sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('id', sa.Uuid(), nullable=False),
    ]


def upgrade():
    op.create_table(
        'user',
        *_account_columns(),
        sa.Column('email', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('mobile', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('street', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('city', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('state', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('pin_code', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('qr_code_url', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('wallet_balance', sa.Float(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_user_email'), 'user', ['email'], unique=True)
    op.create_index(op.f('ix_user_mobile'), 'user', ['mobile'], unique=True)

    op.create_table(
        'transporter',
        *_account_columns(),
        sa.Column('email', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('mobile', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('vehicle_model', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('license_plate', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('qr_code_url', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('wallet_balance', sa.Float(), nullable=False),
        sa.Column('current_lng', sa.Float(), nullable=False),
        sa.Column('current_lat', sa.Float(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_transporter_email'),
                    'transporter', ['email'], unique=True)
    op.create_index(op.f('ix_transporter_mobile'),
                    'transporter', ['mobile'], unique=True)
    op.create_index(op.f('ix_transporter_license_plate'),
                    'transporter', ['license_plate'], unique=True)

    op.create_table(
        'recycler',
        *_account_columns(),
        sa.Column('email', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('address', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('city', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('state', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('zip_code', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_recycler_name'), 'recycler', ['name'], unique=True)
    op.create_index(op.f('ix_recycler_email'),
                    'recycler', ['email'], unique=True)

    op.create_table(
        'admin',
        *_account_columns(),
        sa.Column('email', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('last_login', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_admin_email'), 'admin', ['email'], unique=True)

    op.create_table(
        'collection',
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('transporter_id', sa.Uuid(), nullable=False),
        sa.Column('recycler_id', sa.Uuid(), nullable=True),
        sa.Column('weight', sa.Float(), nullable=False),
        sa.Column('wet', sa.Float(), nullable=False),
        sa.Column('dry', sa.Float(), nullable=False),
        sa.Column('hazardous', sa.Float(), nullable=False),
        sa.Column('location_lng', sa.Float(), nullable=False),
        sa.Column('location_lat', sa.Float(), nullable=False),
        sa.Column('status', collection_status, nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['user.id']),
        sa.ForeignKeyConstraint(['transporter_id'], ['transporter.id']),
        sa.ForeignKeyConstraint(['recycler_id'], ['recycler.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_collection_user_id'),
                    'collection', ['user_id'], unique=False)
    op.create_index(op.f('ix_collection_transporter_id'),
                    'collection', ['transporter_id'], unique=False)
    op.create_index(op.f('ix_collection_recycler_id'),
                    'collection', ['recycler_id'], unique=False)
    op.create_index(op.f('ix_collection_status'),
                    'collection', ['status'], unique=False)

    op.create_table(
        'transportercheckpoint',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('transporter_id', sa.Uuid(), nullable=False),
        sa.Column('day', sa.Date(), nullable=False),
        sa.Column('location_lng', sa.Float(), nullable=False),
        sa.Column('location_lat', sa.Float(), nullable=False),
        sa.Column('scanned_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['transporter_id'], ['transporter.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_transportercheckpoint_transporter_id'),
                    'transportercheckpoint', ['transporter_id'], unique=False)
    op.create_index(op.f('ix_transportercheckpoint_day'),
                    'transportercheckpoint', ['day'], unique=False)

    op.create_table(
        'revenuerequest',
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('recycler_id', sa.Uuid(), nullable=False),
        sa.Column('price_wet', sa.Float(), nullable=False),
        sa.Column('price_dry', sa.Float(), nullable=False),
        sa.Column('price_hazardous', sa.Float(), nullable=False),
        sa.Column('total_calculated_revenue', sa.Float(), nullable=False),
        sa.Column('total_user_share', sa.Float(), nullable=True),
        sa.Column('total_transporter_share', sa.Float(), nullable=True),
        sa.Column('municipality_share', sa.Float(), nullable=True),
        sa.Column('central_gov_share', sa.Float(), nullable=True),
        sa.Column('recycler_share', sa.Float(), nullable=True),
        sa.Column('status', revenue_request_status, nullable=False),
        sa.Column('decided_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['recycler_id'], ['recycler.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_revenuerequest_recycler_id'),
                    'revenuerequest', ['recycler_id'], unique=False)
    op.create_index(op.f('ix_revenuerequest_status'),
                    'revenuerequest', ['status'], unique=False)

    op.create_table(
        'revenuerequestitem',
        sa.Column('revenue_request_id', sa.Uuid(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('collection_id', sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(['revenue_request_id'], ['revenuerequest.id']),
        sa.ForeignKeyConstraint(['collection_id'], ['collection.id']),
        sa.PrimaryKeyConstraint('revenue_request_id', 'position'),
        sa.UniqueConstraint('revenue_request_id', 'collection_id',
                            name='uq_revenue_request_collection'),
    )
    op.create_index(op.f('ix_revenuerequestitem_collection_id'),
                    'revenuerequestitem', ['collection_id'], unique=False)

    op.create_table(
        'walletledgerentry',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('owner_type', wallet_owner_type, nullable=False),
        sa.Column('owner_id', sa.Uuid(), nullable=False),
        sa.Column('revenue_request_id', sa.Uuid(), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['revenue_request_id'], ['revenuerequest.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('revenue_request_id', 'owner_type', 'owner_id',
                            name='uq_ledger_request_owner'),
    )
    op.create_index(op.f('ix_walletledgerentry_owner_type'),
                    'walletledgerentry', ['owner_type'], unique=False)
    op.create_index(op.f('ix_walletledgerentry_owner_id'),
                    'walletledgerentry', ['owner_id'], unique=False)
    op.create_index(op.f('ix_walletledgerentry_revenue_request_id'),
                    'walletledgerentry', ['revenue_request_id'], unique=False)

    op.create_table(
        'auditlog',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('actor_id', sa.Uuid(), nullable=False),
        sa.Column('actor_role', actor_role, nullable=False),
        sa.Column('entity_type', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('entity_id', sa.Uuid(), nullable=False),
        sa.Column('action', audit_action, nullable=False),
        sa.Column('changes', sa.JSON(), nullable=True),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_auditlog_actor_id'),
                    'auditlog', ['actor_id'], unique=False)
    op.create_index(op.f('ix_auditlog_entity_id'),
                    'auditlog', ['entity_id'], unique=False)


def downgrade():
    op.drop_table('auditlog')
    op.drop_table('walletledgerentry')
    op.drop_table('revenuerequestitem')
    op.drop_table('revenuerequest')
    op.drop_table('transportercheckpoint')
    op.drop_table('collection')
    op.drop_table('admin')
    op.drop_table('recycler')
    op.drop_table('transporter')
    op.drop_table('user')

    bind = op.get_bind()
    if bind.dialect.name == 'postgresql':
        for enum in (audit_action, actor_role, wallet_owner_type,
                     revenue_request_status, collection_status):
            enum.drop(bind, checkfirst=True)
