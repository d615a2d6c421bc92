"""Initial schema: clients, stores, users, ledger records, access matrix

1. Tenancy: clients (tenant root) and stores (names unique per client)
2. Users scoped to a client (username and email unique per client)
3. Ledger: sales, purchases, expenses (ref_num unique per client) and
   store-scoped transactions
4. Access matrix: system_roles, pages, role_page_access,
   user_role_assignments, role_audit_log
5. security_events with tenant context

Revision ID: sb001_initial
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'sb001_initial'
down_revision = None
branch_labels = None
depends_on = None


LEDGER_TABLES = (
    ('sales', 'sales_date'),
    ('purchases', 'purchase_date'),
    ('expenses', 'expense_date'),
)


def _ledger_columns(date_column):
    return [
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('client_id', sa.Integer(), nullable=False),
        sa.Column('store_id', sa.Integer(), nullable=True),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('ref_num', sa.String(length=64), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('payment_method', sa.String(length=16), nullable=True),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('supp_doc_url', sa.String(length=1024), nullable=True),
        sa.Column(date_column, sa.Date(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['client_id'], ['clients.id'], ),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id'], ),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
    ]


def upgrade():
    # ==========================================================================
    # 1. TENANCY
    # ==========================================================================
    op.create_table('clients',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('contact_email', sa.String(length=255), nullable=True),
        sa.Column('contact_phone', sa.String(length=64), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_clients_is_active', 'clients', ['is_active'])

    op.create_table('stores',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('client_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['client_id'], ['clients.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('client_id', 'name', name='uq_stores_client_name'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_stores_client_id', 'stores', ['client_id'])

    # ==========================================================================
    # 2. USERS
    # ==========================================================================
    op.create_table('users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('client_id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False),
        sa.Column('store_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['client_id'], ['clients.id'], ),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('client_id', 'username', name='uq_users_client_username'),
        sa.UniqueConstraint('client_id', 'email', name='uq_users_client_email'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_users_client_id', 'users', ['client_id'])
    op.create_index('ix_users_username', 'users', ['username'])
    op.create_index('ix_users_role', 'users', ['role'])

    # ==========================================================================
    # 3. LEDGER
    # ==========================================================================
    for table_name, date_column in LEDGER_TABLES:
        extra = []
        if table_name == 'purchases':
            extra = [
                sa.Column('supplier', sa.String(length=255), nullable=True),
                sa.Column('category', sa.String(length=120), nullable=True),
                sa.Column('other_category', sa.String(length=120), nullable=True),
            ]
        elif table_name == 'expenses':
            extra = [sa.Column('paid_to', sa.String(length=255), nullable=True)]

        op.create_table(table_name,
            *_ledger_columns(date_column),
            *extra,
            sa.UniqueConstraint('client_id', 'ref_num', name=f'uq_{table_name}_client_ref_num'),
            sqlite_autoincrement=True
        )
        op.create_index(f'ix_{table_name}_client_id', table_name, ['client_id'])
        op.create_index(f'ix_{table_name}_store_id', table_name, ['store_id'])
        op.create_index(f'ix_{table_name}_client_date', table_name, ['client_id', date_column])

    op.create_table('transactions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('store_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(length=16), nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('category', sa.String(length=120), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id'], ),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_transactions_store_id', 'transactions', ['store_id'])
    op.create_index('ix_transactions_type', 'transactions', ['type'])
    op.create_index('ix_transactions_store_created', 'transactions', ['store_id', 'created_at'])

    # ==========================================================================
    # 4. ACCESS MATRIX
    # ==========================================================================
    op.create_table('system_roles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('role_type', sa.String(length=32), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_system_roles_name', 'system_roles', ['name'], unique=True)
    op.create_index('ix_system_roles_is_active', 'system_roles', ['is_active'])

    op.create_table('pages',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('page_key', sa.String(length=64), nullable=False),
        sa.Column('page_name', sa.String(length=128), nullable=False),
        sa.Column('page_group', sa.String(length=64), nullable=False),
        sa.Column('route_path', sa.String(length=255), nullable=False),
        sa.Column('icon_name', sa.String(length=64), nullable=True),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_pages_page_key', 'pages', ['page_key'], unique=True)
    op.create_index('ix_pages_page_group', 'pages', ['page_group'])
    op.create_index('ix_pages_is_active', 'pages', ['is_active'])

    op.create_table('role_page_access',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('role_id', sa.Integer(), nullable=False),
        sa.Column('page_id', sa.Integer(), nullable=False),
        sa.Column('access_level', sa.String(length=16), nullable=False, server_default='none'),
        sa.Column('can_create', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('can_read', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('can_update', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('can_delete', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('can_export', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('can_import', sa.Boolean(), nullable=False, server_default='0'),
        sa.ForeignKeyConstraint(['role_id'], ['system_roles.id'], ),
        sa.ForeignKeyConstraint(['page_id'], ['pages.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('role_id', 'page_id', name='uq_role_page_access'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_role_page_access_role_id', 'role_page_access', ['role_id'])
    op.create_index('ix_role_page_access_page_id', 'role_page_access', ['page_id'])

    op.create_table('user_role_assignments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('role_id', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('assigned_by', sa.Integer(), nullable=True),
        sa.Column('assigned_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['role_id'], ['system_roles.id'], ),
        sa.ForeignKeyConstraint(['assigned_by'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'role_id', name='uq_user_role_assignments'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_user_role_assignments_user_id', 'user_role_assignments', ['user_id'])
    op.create_index('ix_user_role_assignments_role_id', 'user_role_assignments', ['role_id'])
    op.create_index('ix_user_role_assignments_is_active', 'user_role_assignments', ['is_active'])

    op.create_table('role_audit_log',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('role_id', sa.Integer(), nullable=False),
        sa.Column('action', sa.String(length=64), nullable=False),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['role_id'], ['system_roles.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_role_audit_log_role_created', 'role_audit_log', ['role_id', 'created_at'])

    # ==========================================================================
    # 5. SECURITY EVENTS
    # ==========================================================================
    op.create_table('security_events',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('client_id', sa.Integer(), nullable=True),
        sa.Column('store_id', sa.Integer(), nullable=True),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('event_type', sa.String(length=64), nullable=False),
        sa.Column('resource', sa.String(length=255), nullable=True),
        sa.Column('action', sa.String(length=64), nullable=True),
        sa.Column('success', sa.Boolean(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.Column('user_agent', sa.String(length=512), nullable=True),
        sa.Column('occurred_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['client_id'], ['clients.id'], ),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id'], ),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_security_events_client_id', 'security_events', ['client_id'])
    op.create_index('ix_security_events_store_id', 'security_events', ['store_id'])
    op.create_index('ix_security_events_user_id', 'security_events', ['user_id'])
    op.create_index('ix_security_events_event_type', 'security_events', ['event_type'])
    op.create_index('ix_security_events_success', 'security_events', ['success'])
    op.create_index('ix_security_events_occurred_at', 'security_events', ['occurred_at'])
    op.create_index('ix_security_events_user_type', 'security_events', ['user_id', 'event_type'])
    op.create_index('ix_security_events_client_occurred', 'security_events', ['client_id', 'occurred_at'])


def downgrade():
    op.drop_table('security_events')
    op.drop_table('role_audit_log')
    op.drop_table('user_role_assignments')
    op.drop_table('role_page_access')
    op.drop_table('pages')
    op.drop_table('system_roles')
    op.drop_table('transactions')
    for table_name, _ in reversed(LEDGER_TABLES):
        op.drop_table(table_name)
    op.drop_table('users')
    op.drop_table('stores')
    op.drop_table('clients')
