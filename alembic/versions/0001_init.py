from alembic import op
import sqlalchemy as sa

revision = '0001_init'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=True, unique=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('password_hash', sa.String(255), nullable=True),
        sa.Column('role', sa.String(50), nullable=False, server_default='client'),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.CheckConstraint("role IN ('admin', 'client')", name='ck_users_role'),
    )
    op.create_table(
        'products',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('imei', sa.String(255), nullable=True),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('price', sa.Numeric(10,2), nullable=False, server_default='0.00'),
        sa.Column('stock_quantity', sa.Integer, nullable=False, server_default='0'),
        sa.Column('stock_status', sa.String(50), nullable=False, server_default='enabled'),
        sa.Column('category', sa.String(50), nullable=False, server_default='accessories'),
        sa.Column('subcategory', sa.String(50), nullable=True),
        sa.Column('model', sa.String(100), nullable=True),
        sa.Column('color', sa.String(50), nullable=True),
        sa.Column('storage_gb', sa.String(50), nullable=True),
        sa.Column('barcode', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.CheckConstraint("stock_status IN ('enabled', 'disabled')", name='ck_products_stock_status'),
        sa.CheckConstraint("category IN ('accessories', 'smartphones')", name='ck_products_category'),
    )
    op.create_index('ix_products_category', 'products', ['category'])
    op.create_index('ix_products_barcode', 'products', ['barcode'])
    op.create_table(
        'orders',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('client_id', sa.Integer, nullable=True),
        sa.Column('guest_name', sa.String(255), nullable=True),
        sa.Column('guest_email', sa.String(255), nullable=True),
        sa.Column('guest_phone', sa.String(50), nullable=True),
        sa.Column('status', sa.String(50), nullable=False, server_default='pending'),
        sa.Column('original_status', sa.String(50), nullable=False, server_default='pending'),
        sa.Column('total_amount', sa.Numeric(10,2), nullable=False, server_default='0.00'),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.CheckConstraint(
            "status IN ('pending', 'approved', 'shipped', 'completed', 'cancelled')",
            name='ck_orders_status',
        ),
    )
    op.create_index('ix_orders_client_id', 'orders', ['client_id'])
    op.create_index('ix_orders_status', 'orders', ['status'])
    op.create_index('ix_orders_created_at', 'orders', ['created_at'])
    op.create_table(
        'order_items',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('order_id', sa.Integer, sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False),
        sa.Column('product_id', sa.Integer, sa.ForeignKey('products.id'), nullable=False),
        sa.Column('quantity', sa.Integer, nullable=False, server_default='1'),
        sa.Column('price', sa.Numeric(10,2), nullable=False)
    )
    op.create_index('ix_order_items_order_id', 'order_items', ['order_id'])
    op.create_index('ix_order_items_product_id', 'order_items', ['product_id'])

def downgrade():
    op.drop_table('order_items')
    op.drop_table('orders')
    op.drop_table('products')
    op.drop_table('users')
