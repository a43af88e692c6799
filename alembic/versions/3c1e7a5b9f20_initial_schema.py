"""initial_schema

Revision ID: 3c1e7a5b9f20
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the site layout, reference, cutting-operation, cultivation-cycle and
site-observation tables plus the ``cycle_status`` enum type.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "3c1e7a5b9f20"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

ENUM_CYCLE_STATUS = postgresql.ENUM(
	"PLANTED",
	"GROWING",
	"HARVESTED",
	"DRIED",
	"BAGGED",
	"IN_STOCK",
	"EXPORTED",
	name="cycle_status",
	create_type=False,
)


def _id_column() -> sa.Column:
	return sa.Column(
		"id",
		postgresql.UUID(as_uuid=True),
		server_default=sa.text("uuid_generate_v4()"),
		nullable=False,
	)


def _timestamp_columns() -> list[sa.Column]:
	return [
		sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
		sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
	]


def upgrade() -> None:
	op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')
	ENUM_CYCLE_STATUS.create(op.get_bind(), checkfirst=True)

	# ── Layout ──────────────────────────────────────────────────────────
	op.create_table(
		"sites",
		_id_column(),
		sa.Column("name", sa.String(255), nullable=False),
		sa.Column("code", sa.String(32), nullable=True),
		*_timestamp_columns(),
		sa.PrimaryKeyConstraint("id"),
	)

	op.create_table(
		"zones",
		_id_column(),
		sa.Column("site_id", postgresql.UUID(as_uuid=True), nullable=False),
		sa.Column("name", sa.String(255), nullable=False),
		*_timestamp_columns(),
		sa.ForeignKeyConstraint(["site_id"], ["sites.id"], ondelete="CASCADE"),
		sa.PrimaryKeyConstraint("id"),
	)
	op.create_index("ix_zones_site_id", "zones", ["site_id"])

	# ── Reference tables ────────────────────────────────────────────────
	op.create_table(
		"seaweed_types",
		_id_column(),
		sa.Column("name", sa.String(100), nullable=False),
		*_timestamp_columns(),
		sa.PrimaryKeyConstraint("id"),
		sa.UniqueConstraint("name"),
	)

	op.create_table(
		"farmers",
		_id_column(),
		sa.Column("first_name", sa.String(100), nullable=False),
		sa.Column("last_name", sa.String(100), nullable=False),
		sa.Column("site_id", postgresql.UUID(as_uuid=True), nullable=True),
		*_timestamp_columns(),
		sa.ForeignKeyConstraint(["site_id"], ["sites.id"], ondelete="SET NULL"),
		sa.PrimaryKeyConstraint("id"),
	)

	op.create_table(
		"service_providers",
		_id_column(),
		sa.Column("name", sa.String(255), nullable=False),
		*_timestamp_columns(),
		sa.PrimaryKeyConstraint("id"),
	)

	op.create_table(
		"modules",
		_id_column(),
		sa.Column("code", sa.String(64), nullable=False),
		sa.Column("site_id", postgresql.UUID(as_uuid=True), nullable=False),
		sa.Column("zone_id", postgresql.UUID(as_uuid=True), nullable=True),
		sa.Column("farmer_id", postgresql.UUID(as_uuid=True), nullable=True),
		sa.Column("lines", sa.Integer(), server_default=sa.text("0"), nullable=False),
		sa.Column("status_history", postgresql.JSONB(), server_default=sa.text("'[]'::jsonb"), nullable=False),
		*_timestamp_columns(),
		sa.ForeignKeyConstraint(["site_id"], ["sites.id"], ondelete="CASCADE"),
		sa.ForeignKeyConstraint(["zone_id"], ["zones.id"], ondelete="SET NULL"),
		sa.ForeignKeyConstraint(["farmer_id"], ["farmers.id"], ondelete="SET NULL"),
		sa.PrimaryKeyConstraint("id"),
	)
	op.create_index("ix_modules_site_zone", "modules", ["site_id", "zone_id"])

	# ── Production records ──────────────────────────────────────────────
	op.create_table(
		"cutting_operations",
		_id_column(),
		sa.Column("operation_date", sa.Date(), nullable=False),
		sa.Column("site_id", postgresql.UUID(as_uuid=True), nullable=False),
		sa.Column("service_provider_id", postgresql.UUID(as_uuid=True), nullable=True),
		sa.Column("seaweed_type_id", postgresql.UUID(as_uuid=True), nullable=True),
		sa.Column("module_cuts", postgresql.JSONB(), nullable=False),
		sa.Column("unit_price", sa.Float(), nullable=False),
		sa.Column("total_amount", sa.Float(), nullable=False),
		sa.Column("is_paid", sa.Boolean(), server_default=sa.text("false"), nullable=False),
		sa.Column("notes", sa.String(2048), nullable=True),
		*_timestamp_columns(),
		sa.ForeignKeyConstraint(["site_id"], ["sites.id"], ondelete="CASCADE"),
		sa.ForeignKeyConstraint(["service_provider_id"], ["service_providers.id"], ondelete="SET NULL"),
		sa.ForeignKeyConstraint(["seaweed_type_id"], ["seaweed_types.id"], ondelete="SET NULL"),
		sa.PrimaryKeyConstraint("id"),
	)
	op.create_index("ix_cutting_operations_site_date", "cutting_operations", ["site_id", "operation_date"])

	op.create_table(
		"cultivation_cycles",
		_id_column(),
		sa.Column("module_id", postgresql.UUID(as_uuid=True), nullable=False),
		sa.Column("seaweed_type_id", postgresql.UUID(as_uuid=True), nullable=False),
		sa.Column("cutting_operation_id", postgresql.UUID(as_uuid=True), nullable=True),
		sa.Column("planting_date", sa.Date(), nullable=False),
		sa.Column("status", ENUM_CYCLE_STATUS, server_default=sa.text("'PLANTED'"), nullable=False),
		sa.Column("initial_weight", sa.Float(), nullable=True),
		sa.Column("lines_planted", sa.Float(), nullable=True),
		sa.Column("harvest_date", sa.Date(), nullable=True),
		sa.Column("harvested_weight", sa.Float(), nullable=True),
		sa.Column("lines_harvested", sa.Float(), nullable=True),
		sa.Column("cuttings_taken_at_harvest_kg", sa.Float(), nullable=True),
		sa.Column("drying_completion_date", sa.Date(), nullable=True),
		sa.Column("bagged_date", sa.Date(), nullable=True),
		sa.Column("stock_date", sa.Date(), nullable=True),
		sa.Column("export_date", sa.Date(), nullable=True),
		sa.Column("processing_notes", sa.String(2048), nullable=True),
		*_timestamp_columns(),
		sa.ForeignKeyConstraint(["module_id"], ["modules.id"], ondelete="CASCADE"),
		sa.ForeignKeyConstraint(["seaweed_type_id"], ["seaweed_types.id"], ondelete="RESTRICT"),
		sa.ForeignKeyConstraint(["cutting_operation_id"], ["cutting_operations.id"], ondelete="CASCADE"),
		sa.PrimaryKeyConstraint("id"),
	)
	op.create_index("ix_cultivation_cycles_module", "cultivation_cycles", ["module_id"])
	op.create_index("ix_cultivation_cycles_operation", "cultivation_cycles", ["cutting_operation_id"])

	op.create_table(
		"site_observations",
		_id_column(),
		sa.Column("site_id", postgresql.UUID(as_uuid=True), nullable=False),
		sa.Column("observed_on", sa.Date(), nullable=False),
		sa.Column("temperature_c", sa.Float(), nullable=True),
		sa.Column("salinity_ppt", sa.Float(), nullable=True),
		sa.Column("ph", sa.Float(), nullable=True),
		sa.Column("notes", sa.String(2048), nullable=True),
		*_timestamp_columns(),
		sa.ForeignKeyConstraint(["site_id"], ["sites.id"], ondelete="CASCADE"),
		sa.PrimaryKeyConstraint("id"),
	)
	op.create_index("ix_site_observations_site_date", "site_observations", ["site_id", "observed_on"])


def downgrade() -> None:
	op.drop_table("site_observations")
	op.drop_table("cultivation_cycles")
	op.drop_table("cutting_operations")
	op.drop_table("modules")
	op.drop_table("service_providers")
	op.drop_table("farmers")
	op.drop_table("seaweed_types")
	op.drop_table("zones")
	op.drop_table("sites")
	ENUM_CYCLE_STATUS.drop(op.get_bind(), checkfirst=True)
