"""Create concept dictionary tables.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _creator_columns() -> list[sa.Column]:
    return [
        sa.Column("creator", sa.String(100), nullable=True),
        sa.Column("date_created", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def _change_columns() -> list[sa.Column]:
    return [
        sa.Column("changed_by", sa.String(100), nullable=True),
        sa.Column("date_changed", sa.DateTime(timezone=True), nullable=True),
    ]


def _retire_columns() -> list[sa.Column]:
    return [
        sa.Column("retired", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("retired_by", sa.String(100), nullable=True),
        sa.Column("date_retired", sa.DateTime(timezone=True), nullable=True),
        sa.Column("retire_reason", sa.String(255), nullable=True),
    ]


def upgrade() -> None:
    # Lookup tables
    op.create_table(
        "concept_classes",
        sa.Column("concept_class_id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False, unique=True),
        sa.Column("description", sa.String(255), nullable=True),
        *_creator_columns(),
        *_retire_columns(),
    )
    op.create_index("ix_concept_classes_name", "concept_classes", ["name"])
    op.create_index("ix_concept_classes_retired", "concept_classes", ["retired"])

    op.create_table(
        "concept_datatypes",
        sa.Column("concept_datatype_id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False, unique=True),
        sa.Column("hl7_abbreviation", sa.String(3), nullable=True),
        sa.Column("description", sa.String(255), nullable=True),
        *_creator_columns(),
        *_retire_columns(),
    )
    op.create_index("ix_concept_datatypes_name", "concept_datatypes", ["name"])
    op.create_index("ix_concept_datatypes_retired", "concept_datatypes", ["retired"])

    # Concepts and their parts
    op.create_table(
        "concepts",
        sa.Column("concept_id", sa.Integer(), primary_key=True),
        sa.Column(
            "class_id",
            sa.Integer(),
            sa.ForeignKey("concept_classes.concept_class_id"),
            nullable=False,
        ),
        sa.Column(
            "datatype_id",
            sa.Integer(),
            sa.ForeignKey("concept_datatypes.concept_datatype_id"),
            nullable=False,
        ),
        sa.Column("is_set", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("version", sa.String(50), nullable=True),
        *_creator_columns(),
        *_change_columns(),
        *_retire_columns(),
    )
    op.create_index("ix_concepts_class_id", "concepts", ["class_id"])
    op.create_index("ix_concepts_datatype_id", "concepts", ["datatype_id"])
    op.create_index("ix_concepts_retired", "concepts", ["retired"])

    op.create_table(
        "concept_names",
        sa.Column("concept_name_id", sa.Integer(), primary_key=True),
        sa.Column(
            "concept_id",
            sa.Integer(),
            sa.ForeignKey("concepts.concept_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("short_name", sa.String(255), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("locale", sa.String(20), nullable=False),
        sa.UniqueConstraint("concept_id", "locale", name="uq_concept_names_concept_locale"),
    )
    op.create_index("ix_concept_names_concept_id", "concept_names", ["concept_id"])
    op.create_index("ix_concept_names_name", "concept_names", ["name"])

    op.create_table(
        "concept_synonyms",
        sa.Column("concept_synonym_id", sa.Integer(), primary_key=True),
        sa.Column(
            "concept_id",
            sa.Integer(),
            sa.ForeignKey("concepts.concept_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("synonym", sa.String(255), nullable=False),
        sa.Column("locale", sa.String(20), nullable=False),
    )
    op.create_index("ix_concept_synonyms_concept_id", "concept_synonyms", ["concept_id"])
    op.create_index("ix_concept_synonyms_synonym", "concept_synonyms", ["synonym"])

    op.create_table(
        "concept_numerics",
        sa.Column(
            "concept_id",
            sa.Integer(),
            sa.ForeignKey("concepts.concept_id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("hi_absolute", sa.Float(), nullable=True),
        sa.Column("hi_critical", sa.Float(), nullable=True),
        sa.Column("hi_normal", sa.Float(), nullable=True),
        sa.Column("low_absolute", sa.Float(), nullable=True),
        sa.Column("low_critical", sa.Float(), nullable=True),
        sa.Column("low_normal", sa.Float(), nullable=True),
        sa.Column("units", sa.String(50), nullable=True),
        sa.Column("precise", sa.Boolean(), nullable=False, server_default=sa.false()),
    )

    # Drugs (referenced by concept answers)
    op.create_table(
        "drugs",
        sa.Column("drug_id", sa.Integer(), primary_key=True),
        sa.Column("concept_id", sa.Integer(), sa.ForeignKey("concepts.concept_id"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("combination", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("dosage_form_id", sa.Integer(), sa.ForeignKey("concepts.concept_id"), nullable=True),
        sa.Column("dose_strength", sa.Float(), nullable=True),
        sa.Column("maximum_daily_dose", sa.Float(), nullable=True),
        sa.Column("minimum_daily_dose", sa.Float(), nullable=True),
        sa.Column("route_id", sa.Integer(), sa.ForeignKey("concepts.concept_id"), nullable=True),
        sa.Column("units", sa.String(50), nullable=True),
        *_creator_columns(),
        *_retire_columns(),
    )
    op.create_index("ix_drugs_concept_id", "drugs", ["concept_id"])
    op.create_index("ix_drugs_name", "drugs", ["name"])
    op.create_index("ix_drugs_retired", "drugs", ["retired"])

    op.create_table(
        "concept_answers",
        sa.Column("concept_answer_id", sa.Integer(), primary_key=True),
        sa.Column(
            "concept_id",
            sa.Integer(),
            sa.ForeignKey("concepts.concept_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("answer_concept_id", sa.Integer(), sa.ForeignKey("concepts.concept_id"), nullable=False),
        sa.Column("answer_drug_id", sa.Integer(), sa.ForeignKey("drugs.drug_id"), nullable=True),
        *_creator_columns(),
    )
    op.create_index("ix_concept_answers_concept_id", "concept_answers", ["concept_id"])
    op.create_index("ix_concept_answers_answer_concept_id", "concept_answers", ["answer_concept_id"])

    # Set membership, direct and flattened
    op.create_table(
        "concept_sets",
        sa.Column(
            "concept_set_id",
            sa.Integer(),
            sa.ForeignKey("concepts.concept_id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("concept_id", sa.Integer(), sa.ForeignKey("concepts.concept_id"), primary_key=True),
        sa.Column("sort_weight", sa.Float(), nullable=False, server_default="0"),
        *_creator_columns(),
    )
    op.create_index("ix_concept_sets_concept_id", "concept_sets", ["concept_id"])

    op.create_table(
        "concept_set_derived",
        sa.Column(
            "concept_set_id",
            sa.Integer(),
            sa.ForeignKey("concepts.concept_id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "concept_id",
            sa.Integer(),
            sa.ForeignKey("concepts.concept_id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("sort_weight", sa.Float(), nullable=False, server_default="0"),
    )
    op.create_index("ix_concept_set_derived_concept_id", "concept_set_derived", ["concept_id"])

    # Search index
    op.create_table(
        "concept_words",
        sa.Column(
            "concept_id",
            sa.Integer(),
            sa.ForeignKey("concepts.concept_id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("word", sa.String(50), primary_key=True),
        sa.Column("synonym", sa.String(255), primary_key=True, server_default=""),
        sa.Column("locale", sa.String(20), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
    )
    op.create_index("ix_concept_words_word", "concept_words", ["word"])

    # Proposals
    proposal_state = sa.Enum("UNMAPPED", "CONCEPT", "SYNONYM", "REJECT", name="proposal_state")
    op.create_table(
        "concept_proposals",
        sa.Column("concept_proposal_id", sa.Integer(), primary_key=True),
        sa.Column("original_text", sa.String(255), nullable=False),
        sa.Column("final_text", sa.String(255), nullable=True),
        sa.Column("obs_concept_id", sa.Integer(), sa.ForeignKey("concepts.concept_id"), nullable=True),
        sa.Column("mapped_concept_id", sa.Integer(), sa.ForeignKey("concepts.concept_id"), nullable=True),
        sa.Column("state", proposal_state, nullable=False, server_default="UNMAPPED"),
        sa.Column("comments", sa.String(255), nullable=True),
        sa.Column("locale", sa.String(20), nullable=True),
        *_creator_columns(),
        *_change_columns(),
    )
    op.create_index("ix_concept_proposals_original_text", "concept_proposals", ["original_text"])
    op.create_index("ix_concept_proposals_mapped_concept_id", "concept_proposals", ["mapped_concept_id"])
    op.create_index("ix_concept_proposals_state", "concept_proposals", ["state"])

    op.create_table(
        "global_properties",
        sa.Column("property", sa.String(255), primary_key=True),
        sa.Column("property_value", sa.Text(), nullable=True),
    )


def downgrade() -> None:
    op.drop_table("global_properties")
    op.drop_table("concept_proposals")
    sa.Enum(name="proposal_state").drop(op.get_bind(), checkfirst=True)
    op.drop_table("concept_words")
    op.drop_table("concept_set_derived")
    op.drop_table("concept_sets")
    op.drop_table("concept_answers")
    op.drop_table("drugs")
    op.drop_table("concept_numerics")
    op.drop_table("concept_synonyms")
    op.drop_table("concept_names")
    op.drop_table("concepts")
    op.drop_table("concept_datatypes")
    op.drop_table("concept_classes")
