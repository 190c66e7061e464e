"""Initial schema: lab records, chat messages, BMI records."""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


report_type = sa.Enum("BloodPressure", "BloodSugar", "LipidProfile", "FBC", name="reporttype")
participant_type = sa.Enum("doctor", "patient", name="participanttype")


def upgrade():
    op.create_table(
        "lab_records",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("patient_id", sa.String(length=64), nullable=False, index=True),
        sa.Column("doctor_id", sa.String(length=64), index=True),
        sa.Column("report_type", report_type, nullable=False, index=True),
        # Fernet tokens
        sa.Column("fields", sa.Text, nullable=False),
        sa.Column("date", sa.String(length=40), nullable=False),
        sa.Column("doctor_comment", sa.Text),
        sa.Column("commented", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
    )

    op.create_table(
        "chat_messages",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("sender_id", sa.String(length=64), nullable=False, index=True),
        sa.Column("sender_type", participant_type, nullable=False),
        sa.Column("receiver_id", sa.String(length=64), nullable=False, index=True),
        sa.Column("receiver_type", participant_type, nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("timestamp", sa.BigInteger, nullable=False, index=True),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
    )

    op.create_table(
        "bmi_records",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=64), nullable=False, index=True),
        sa.Column("height", sa.Float, nullable=False),
        sa.Column("weight", sa.Float, nullable=False),
        sa.Column("bmi", sa.Float, nullable=False),
        sa.Column("date", sa.String(length=40), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
    )


def downgrade():
    op.drop_table("bmi_records")
    op.drop_table("chat_messages")
    op.drop_table("lab_records")
    participant_type.drop(op.get_bind(), checkfirst=True)
    report_type.drop(op.get_bind(), checkfirst=True)
