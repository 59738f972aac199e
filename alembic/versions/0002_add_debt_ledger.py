from alembic import op
import sqlalchemy as sa

revision = '0002_add_debt_ledger'
down_revision = '0001_init'
branch_labels = None
depends_on = None

def upgrade():
    op.create_table(
        'user_debt_adjustments',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('user_id', sa.Integer, nullable=False),
        sa.Column('adjustment_amount', sa.Numeric(10,2), nullable=False),
        sa.Column('adjustment_type', sa.String(50), nullable=False),
        sa.Column('currency', sa.String(10), nullable=False),
        sa.Column('notes', sa.Text, nullable=True),
        sa.Column('created_by', sa.Integer, nullable=False),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.CheckConstraint("currency IN ('EUR', 'MKD')", name='ck_debt_currency'),
    )
    op.create_index(
        'idx_user_debt_adjustments_user_currency',
        'user_debt_adjustments',
        ['user_id', 'currency'],
    )

def downgrade():
    op.drop_index('idx_user_debt_adjustments_user_currency', table_name='user_debt_adjustments')
    op.drop_table('user_debt_adjustments')
