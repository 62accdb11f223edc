"""create_working_hours_schema

Revision ID: 3f1a9c2e7b40
Revises:
Create Date: 2026-10-17 09:12:44.201873

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '3f1a9c2e7b40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # 1. Jerarquía: organizations → complexes → clinics → users
    op.create_table('organizations',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False, comment='Nombre del grupo empresarial'),
        sa.Column('contact_email', sa.String(length=255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table('complexes',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('organization_id', sa.UUID(), nullable=True, comment='Organización dueña (null = complejo independiente)'),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('address', sa.String(length=500), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_complexes_organization_id'), 'complexes', ['organization_id'], unique=False)

    op.create_table('clinics',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('organization_id', sa.UUID(), nullable=True),
        sa.Column('complex_id', sa.UUID(), nullable=True, comment='Complejo al que pertenece (null = clínica independiente)'),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('specialty_type', sa.String(length=100), nullable=True, comment='general, dental, obstetric, ophthalmic, etc.'),
        sa.Column('timezone', sa.String(length=50), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id']),
        sa.ForeignKeyConstraint(['complex_id'], ['complexes.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_clinics_organization_id'), 'clinics', ['organization_id'], unique=False)
    op.create_index(op.f('ix_clinics_complex_id'), 'clinics', ['complex_id'], unique=False)

    op.create_table('users',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('clinic_id', sa.UUID(), nullable=True, comment='Clínica donde atiende: entidad superior para validar su horario'),
        sa.Column('complex_id', sa.UUID(), nullable=True, comment='Complejo asignado (staff sin clínica)'),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('role', sa.Enum('ADMIN', 'DOCTOR', 'STAFF', name='userrole'), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('specialty', sa.String(length=100), nullable=True, comment='Especialidad médica'),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['clinic_id'], ['clinics.id']),
        sa.ForeignKeyConstraint(['complex_id'], ['complexes.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
    op.create_index(op.f('ix_users_clinic_id'), 'users', ['clinic_id'], unique=False)
    op.create_index(op.f('ix_users_complex_id'), 'users', ['complex_id'], unique=False)

    # 2. Pacientes y citas
    op.create_table('patients',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('clinic_id', sa.UUID(), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['clinic_id'], ['clinics.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_patients_clinic_id'), 'patients', ['clinic_id'], unique=False)

    op.create_table('appointments',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('clinic_id', sa.UUID(), nullable=False),
        sa.Column('patient_id', sa.UUID(), nullable=False),
        sa.Column('doctor_id', sa.UUID(), nullable=False),
        sa.Column('appointment_date', sa.Date(), nullable=False),
        sa.Column('appointment_time', sa.String(length=5), nullable=False, comment='Hora de inicio HH:mm'),
        sa.Column('duration_minutes', sa.Integer(), nullable=True, comment='Duración; si es NULL se asumen 30 minutos'),
        sa.Column('status', sa.Enum('SCHEDULED', 'CONFIRMED', 'IN_PROGRESS', 'COMPLETED', 'NO_SHOW', 'CANCELLED', 'NEEDS_RESCHEDULING', name='appointmentstatus'), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('rescheduling_reason', sa.String(length=500), nullable=True),
        sa.Column('marked_for_rescheduling_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancellation_reason', sa.String(length=500), nullable=True),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['clinic_id'], ['clinics.id']),
        sa.ForeignKeyConstraint(['patient_id'], ['patients.id']),
        sa.ForeignKeyConstraint(['doctor_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_appointment_doctor_date', 'appointments', ['doctor_id', 'appointment_date'], unique=False)
    op.create_index('idx_appointment_patient', 'appointments', ['patient_id', 'appointment_date'], unique=False)
    op.create_index('idx_appointment_status', 'appointments', ['doctor_id', 'status'], unique=False)

    # 3. Horarios de atención (entity_id polimórfico, sin FK)
    op.create_table('working_hours',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('entity_type', sa.Enum('organization', 'complex', 'clinic', 'user', name='entitytype'), nullable=False),
        sa.Column('entity_id', sa.UUID(), nullable=False, comment='ID de la organización, complejo, clínica o usuario (sin FK: polimórfico)'),
        sa.Column('day_of_week', sa.Enum('sunday', 'monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', name='dayofweek'), nullable=False),
        sa.Column('is_working_day', sa.Boolean(), nullable=False),
        sa.Column('opening_time', sa.String(length=5), nullable=True),
        sa.Column('closing_time', sa.String(length=5), nullable=True),
        sa.Column('break_start_time', sa.String(length=5), nullable=True),
        sa.Column('break_end_time', sa.String(length=5), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('entity_type', 'entity_id', 'day_of_week', name='uq_working_hours_entity_day')
    )
    op.create_index('idx_working_hours_entity_active', 'working_hours', ['entity_type', 'entity_id', 'is_active'], unique=False)

    # 4. Avisos a pacientes
    op.create_table('notifications',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('recipient_id', sa.UUID(), nullable=False, comment='Paciente destinatario'),
        sa.Column('title', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('message', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('notification_type', sa.Enum('appointment_rescheduled', 'appointment_needs_rescheduling', 'appointment_cancelled', name='notificationtype'), nullable=False),
        sa.Column('priority', sa.Enum('low', 'normal', 'high', name='notificationpriority'), nullable=False),
        sa.Column('related_entity_type', sa.String(length=50), nullable=True),
        sa.Column('related_entity_id', sa.UUID(), nullable=True),
        sa.Column('delivery_method', sa.String(length=20), nullable=False),
        sa.Column('delivery_status', sa.Enum('pending', 'sent', 'failed', name='deliverystatus'), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_notification_recipient', 'notifications', ['recipient_id', 'is_read'], unique=False)

    # 5. Auditoría
    op.create_table('audit_log',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('user_id', sa.UUID(), nullable=True, comment='Usuario que originó el cambio, si se conoce'),
        sa.Column('entity', sa.String(length=50), nullable=False, comment='Nombre de la entidad: working_hours, appointment'),
        sa.Column('entity_id', sa.String(length=100), nullable=False, comment='ID del registro afectado (o entity_type:entity_id para horarios)'),
        sa.Column('action', sa.String(length=30), nullable=False, comment='replace, deactivate, reschedule, mark_for_rescheduling, cancel'),
        sa.Column('old_data', postgresql.JSONB(astext_type=sa.Text()), nullable=True, comment='Snapshot del registro antes del cambio'),
        sa.Column('new_data', postgresql.JSONB(astext_type=sa.Text()), nullable=True, comment='Snapshot del registro después del cambio'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_audit_log_user_id'), 'audit_log', ['user_id'], unique=False)
    op.create_index(op.f('ix_audit_log_entity'), 'audit_log', ['entity'], unique=False)
    op.create_index(op.f('ix_audit_log_action'), 'audit_log', ['action'], unique=False)


def downgrade() -> None:
    op.drop_table('audit_log')
    op.drop_table('notifications')
    op.drop_table('working_hours')
    op.drop_table('appointments')
    op.drop_table('patients')
    op.drop_table('users')
    op.drop_table('clinics')
    op.drop_table('complexes')
    op.drop_table('organizations')

    for enum_name in (
        'deliverystatus', 'notificationpriority', 'notificationtype',
        'dayofweek', 'entitytype', 'appointmentstatus', 'userrole',
    ):
        op.execute(f"DROP TYPE IF EXISTS {enum_name}")
