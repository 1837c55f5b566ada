"""
Create learning tables

Revision ID: 0001
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import mysql


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


ID = mysql.BIGINT(unsigned=True).with_variant(sa.Integer(), "sqlite")
TIMESTAMP = mysql.DATETIME(fsp=3)
TABLE_OPTIONS = {
    "mysql_engine": "InnoDB",
    "mysql_charset": "utf8mb4",
    "mysql_collate": "utf8mb4_0900_ai_ci",
}


def _id_column() -> sa.Column:
    return sa.Column("id", ID, primary_key=True, autoincrement=True)


def upgrade() -> None:
    op.create_table(
        "admin_users",
        _id_column(),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("display_name", sa.String(length=191), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("1"), nullable=False),
        sa.Column("created_at", TIMESTAMP, nullable=False),
        sa.Column("updated_at", TIMESTAMP, nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_admin_users"),
        sa.UniqueConstraint("user_id", name="uq_admin_users_user_id"),
        **TABLE_OPTIONS,
    )
    op.create_index("idx_admin_users_is_active", "admin_users", ["is_active"], unique=False)

    op.create_table(
        "users",
        _id_column(),
        sa.Column("email", sa.String(length=191), nullable=False),
        sa.Column("full_name", sa.String(length=191), nullable=True),
        sa.Column("xp", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("rank", sa.String(length=32), server_default="Beginner", nullable=False),
        sa.Column("created_at", TIMESTAMP, nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        **TABLE_OPTIONS,
    )
    op.create_index("idx_users_email", "users", ["email"], unique=True)

    op.create_table(
        "programs",
        _id_column(),
        sa.Column("title", sa.String(length=191), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("type", sa.String(length=16), nullable=False),
        sa.Column("category", sa.String(length=191), nullable=True),
        sa.Column("content_body", sa.Text(), nullable=True),
        sa.Column("quiz_csv", sa.Text(), nullable=True),
        sa.Column("xp_reward", sa.Integer(), nullable=True),
        sa.Column("level_requirement", sa.Integer(), server_default=sa.text("1"), nullable=False),
        sa.Column("passing_score", sa.Integer(), nullable=True),
        sa.Column("time_limit", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("1"), nullable=False),
        sa.Column("created_at", TIMESTAMP, nullable=False),
        sa.Column("updated_at", TIMESTAMP, nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_programs"),
        sa.UniqueConstraint("title", "type", name="uq_programs_title_type"),
        **TABLE_OPTIONS,
    )
    op.create_index("idx_programs_type_active", "programs", ["type", "is_active"], unique=False)

    op.create_table(
        "questions",
        _id_column(),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("question_type", sa.String(length=32), nullable=False),
        sa.Column("explanation", sa.Text(), nullable=True),
        sa.Column("difficulty", sa.Integer(), server_default=sa.text("1"), nullable=False),
        sa.Column("points", sa.Integer(), server_default=sa.text("10"), nullable=False),
        sa.Column("tags", sa.JSON(), nullable=True),
        sa.Column("category", sa.String(length=191), nullable=True),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("created_by_admin_id", ID, nullable=True),
        sa.Column("created_at", TIMESTAMP, nullable=False),
        sa.Column("updated_at", TIMESTAMP, nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_questions"),
        sa.ForeignKeyConstraint(
            ["created_by_admin_id"],
            ["admin_users.id"],
            name="fk_questions_created_by_admin",
            ondelete="SET NULL",
        ),
        **TABLE_OPTIONS,
    )
    op.create_index("idx_questions_category", "questions", ["category"], unique=False)
    op.create_index("idx_questions_created_by", "questions", ["created_by_admin_id"], unique=False)

    op.create_table(
        "question_options",
        _id_column(),
        sa.Column("question_id", ID, nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False),
        sa.Column("is_correct", sa.Boolean(), server_default=sa.text("0"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_question_options"),
        sa.ForeignKeyConstraint(
            ["question_id"],
            ["questions.id"],
            name="fk_question_options_question",
            ondelete="CASCADE",
        ),
        **TABLE_OPTIONS,
    )
    op.create_index(
        "idx_question_options_question",
        "question_options",
        ["question_id", "sort_order"],
        unique=False,
    )

    op.create_table(
        "program_questions",
        _id_column(),
        sa.Column("program_id", ID, nullable=False),
        sa.Column("question_id", ID, nullable=False),
        sa.Column("question_number", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_program_questions"),
        sa.ForeignKeyConstraint(
            ["program_id"],
            ["programs.id"],
            name="fk_program_questions_program",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["question_id"],
            ["questions.id"],
            name="fk_program_questions_question",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("program_id", "question_id", name="uq_program_questions_program_question"),
        **TABLE_OPTIONS,
    )
    op.create_index(
        "idx_program_questions_order",
        "program_questions",
        ["program_id", "question_number"],
        unique=False,
    )

    op.create_table(
        "learning_history",
        _id_column(),
        sa.Column("user_id", ID, nullable=False),
        sa.Column("program_id", ID, nullable=False),
        sa.Column("status", sa.String(length=16), server_default="in_progress", nullable=False),
        sa.Column("score", sa.Integer(), nullable=True),
        sa.Column("is_passed", sa.Boolean(), server_default=sa.text("0"), nullable=False),
        sa.Column("started_at", TIMESTAMP, nullable=False),
        sa.Column("completed_at", TIMESTAMP, nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_learning_history"),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name="fk_learning_history_user",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["program_id"],
            ["programs.id"],
            name="fk_learning_history_program",
            ondelete="CASCADE",
        ),
        **TABLE_OPTIONS,
    )
    op.create_index(
        "idx_learning_history_user_program",
        "learning_history",
        ["user_id", "program_id", "is_passed"],
        unique=False,
    )

    op.create_table(
        "user_answers",
        _id_column(),
        sa.Column("history_id", ID, nullable=False),
        sa.Column("question_id", ID, nullable=False),
        sa.Column("selected_option_id", ID, nullable=True),
        sa.Column("text_answer", sa.Text(), nullable=True),
        sa.Column("is_correct", sa.Boolean(), server_default=sa.text("0"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_user_answers"),
        sa.ForeignKeyConstraint(
            ["history_id"],
            ["learning_history.id"],
            name="fk_user_answers_history",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["question_id"],
            ["questions.id"],
            name="fk_user_answers_question",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["selected_option_id"],
            ["question_options.id"],
            name="fk_user_answers_option",
            ondelete="SET NULL",
        ),
        **TABLE_OPTIONS,
    )
    op.create_index("idx_user_answers_history", "user_answers", ["history_id"], unique=False)

    op.create_table(
        "weaknesses",
        _id_column(),
        sa.Column("user_id", ID, nullable=False),
        sa.Column("question_id", ID, nullable=False),
        sa.Column("failure_count", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("last_failed_at", TIMESTAMP, nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_weaknesses"),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name="fk_weaknesses_user",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["question_id"],
            ["questions.id"],
            name="fk_weaknesses_question",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("user_id", "question_id", name="uq_weaknesses_user_question"),
        **TABLE_OPTIONS,
    )

    op.create_table(
        "question_import_logs",
        _id_column(),
        sa.Column("admin_user_id", ID, nullable=True),
        sa.Column("program_id", ID, nullable=True),
        sa.Column("source_name", sa.String(length=255), nullable=True),
        sa.Column("action", sa.String(length=32), nullable=False),
        sa.Column("questions_imported", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("new_value", sa.Text(), nullable=True),
        sa.Column("created_at", TIMESTAMP, nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_question_import_logs"),
        sa.ForeignKeyConstraint(
            ["admin_user_id"],
            ["admin_users.id"],
            name="fk_question_import_logs_admin",
            ondelete="SET NULL",
        ),
        sa.ForeignKeyConstraint(
            ["program_id"],
            ["programs.id"],
            name="fk_question_import_logs_program",
            ondelete="SET NULL",
        ),
        **TABLE_OPTIONS,
    )
    op.create_index(
        "idx_question_import_logs_admin",
        "question_import_logs",
        ["admin_user_id", "created_at"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("idx_question_import_logs_admin", table_name="question_import_logs")
    op.drop_table("question_import_logs")
    op.drop_table("weaknesses")
    op.drop_index("idx_user_answers_history", table_name="user_answers")
    op.drop_table("user_answers")
    op.drop_index("idx_learning_history_user_program", table_name="learning_history")
    op.drop_table("learning_history")
    op.drop_index("idx_program_questions_order", table_name="program_questions")
    op.drop_table("program_questions")
    op.drop_index("idx_question_options_question", table_name="question_options")
    op.drop_table("question_options")
    op.drop_index("idx_questions_created_by", table_name="questions")
    op.drop_index("idx_questions_category", table_name="questions")
    op.drop_table("questions")
    op.drop_index("idx_programs_type_active", table_name="programs")
    op.drop_table("programs")
    op.drop_index("idx_users_email", table_name="users")
    op.drop_table("users")
    op.drop_index("idx_admin_users_is_active", table_name="admin_users")
    op.drop_table("admin_users")
