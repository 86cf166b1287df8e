from __future__ import annotations
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = "20261017_0001"
down_revision = None
branch_labels = None
depends_on = None

def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=128), primary_key=True, nullable=False),
        sa.Column("first_name", sa.String(length=80), nullable=False, server_default=""),
        sa.Column("last_name", sa.String(length=80), nullable=False, server_default=""),
        sa.Column("profile_pic", sa.Text(), nullable=False, server_default=""),
        sa.Column("role", sa.String(length=16), nullable=False, server_default="player"),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
    )

    op.create_table(
        "challenges",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("title", sa.String(length=120), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("criteria", sa.JSON(), nullable=False),
        sa.Column("image_url", sa.Text(), nullable=False, server_default=""),
        sa.Column("start_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("end_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("created_by", sa.String(length=128), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_challenges_created_at", "challenges", ["created_at"])

    op.create_table(
        "submissions",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("challenge_id", sa.Uuid(as_uuid=True), sa.ForeignKey("challenges.id", ondelete="CASCADE"), nullable=False),
        sa.Column("uid", sa.String(length=128), nullable=False),
        sa.Column("video_url", sa.Text(), nullable=False),
        sa.Column("storage_path", sa.Text(), nullable=False, server_default=""),
        sa.Column("duration_sec", sa.Float(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("total_stars", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("rating_count", sa.Integer(), nullable=False, server_default="0"),
        sa.CheckConstraint("total_points = total_stars * 5", name="ck_submission_points_per_star"),
    )
    op.create_index("ix_submissions_challenge_id", "submissions", ["challenge_id"])
    op.create_index("ix_submissions_uid", "submissions", ["uid"])
    op.create_index("ix_submissions_created_at", "submissions", ["created_at"])

    # Primary key doubles as the once-per-rater guarantee
    op.create_table(
        "ratings",
        sa.Column("submission_id", sa.Uuid(as_uuid=True), sa.ForeignKey("submissions.id", ondelete="CASCADE"), nullable=False),
        sa.Column("rater_id", sa.String(length=128), nullable=False),
        sa.Column("stars", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("submission_id", "rater_id", name="pk_ratings"),
        sa.CheckConstraint("stars BETWEEN 1 AND 5", name="ck_rating_stars_range"),
    )

def downgrade() -> None:
    op.drop_table("ratings")
    op.drop_index("ix_submissions_created_at", table_name="submissions")
    op.drop_index("ix_submissions_uid", table_name="submissions")
    op.drop_index("ix_submissions_challenge_id", table_name="submissions")
    op.drop_table("submissions")
    op.drop_index("ix_challenges_created_at", table_name="challenges")
    op.drop_table("challenges")
    op.drop_table("users")
