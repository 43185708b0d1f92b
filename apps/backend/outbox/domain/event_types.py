"""
===============================================================================
TARJETA CRC — domain/event_types.py
===============================================================================

Módulo:
    Taxonomía de tipos de evento

Responsabilidades:
    - Centralizar las claves de tipo de evento ("<dominio>.<acción>").
    - Agrupar tipos por dominio para registros y consultas.
    - Validar si un string pertenece a la taxonomía conocida.

Notas:
    - La taxonomía es orientativa: el Event Store acepta cualquier tipo no
      vacío; el publisher solo avisa por log si el tipo es desconocido.
    - Los valores son persistidos: renombrar un miembro rompe el historial.
===============================================================================
"""

from __future__ import annotations

from enum import Enum


class EventType(str, Enum):
    """Tipos de evento conocidos por el sistema."""

    # Auth
    AUTH_USER_SIGNED_UP = "auth.user_signed_up"
    AUTH_USER_LOGGED_IN = "auth.user_logged_in"
    AUTH_USER_LOGGED_OUT = "auth.user_logged_out"
    AUTH_EMAIL_VERIFIED = "auth.email_verified"
    AUTH_PASSWORD_CHANGED = "auth.password_changed"
    AUTH_PASSWORD_RESET_REQUESTED = "auth.password_reset_requested"
    AUTH_ACCOUNT_DELETED = "auth.account_deleted"

    # User
    USER_CREATED = "user.created"
    USER_UPDATED = "user.updated"
    USER_DELETED = "user.deleted"
    USER_PROFILE_UPDATED = "user.profile_updated"
    USER_EMAIL_CHANGED = "user.email_changed"
    USER_AVATAR_UPDATED = "user.avatar_updated"

    # Practice (organización)
    PRACTICE_CREATED = "practice.created"
    PRACTICE_UPDATED = "practice.updated"
    PRACTICE_DELETED = "practice.deleted"
    PRACTICE_SWITCHED = "practice.switched"
    PRACTICE_DETAILS_CREATED = "practice.details_created"
    PRACTICE_DETAILS_UPDATED = "practice.details_updated"
    PRACTICE_DETAILS_DELETED = "practice.details_deleted"
    PRACTICE_MEMBER_INVITED = "practice.member_invited"
    PRACTICE_MEMBER_JOINED = "practice.member_joined"
    PRACTICE_MEMBER_REMOVED = "practice.member_removed"
    PRACTICE_MEMBER_ROLE_CHANGED = "practice.member_role_changed"

    # Payment
    PAYMENT_SESSION_CREATED = "payment.session_created"
    PAYMENT_RECEIVED = "payment.received"
    PAYMENT_SUCCEEDED = "payment.succeeded"
    PAYMENT_FAILED = "payment.failed"
    PAYMENT_CANCELED = "payment.canceled"

    # Intake payments
    INTAKE_PAYMENT_CREATED = "intake.payment_created"
    INTAKE_PAYMENT_SUCCEEDED = "intake.payment_succeeded"
    INTAKE_PAYMENT_FAILED = "intake.payment_failed"
    INTAKE_PAYMENT_CANCELED = "intake.payment_canceled"

    # Onboarding (cuentas conectadas)
    ONBOARDING_STARTED = "onboarding.started"
    ONBOARDING_COMPLETED = "onboarding.completed"
    ONBOARDING_FAILED = "onboarding.failed"
    ONBOARDING_ACCOUNT_UPDATED = "onboarding.account_updated"
    ONBOARDING_ACCOUNT_REQUIREMENTS_CHANGED = "onboarding.account_requirements_changed"
    ONBOARDING_ACCOUNT_CAPABILITIES_UPDATED = "onboarding.account_capabilities_updated"
    ONBOARDING_EXTERNAL_ACCOUNT_CREATED = "onboarding.external_account_created"
    ONBOARDING_EXTERNAL_ACCOUNT_UPDATED = "onboarding.external_account_updated"
    ONBOARDING_EXTERNAL_ACCOUNT_DELETED = "onboarding.external_account_deleted"
    ONBOARDING_WEBHOOK_RECEIVED = "onboarding.webhook_received"
    ONBOARDING_WEBHOOK_PROCESSED = "onboarding.webhook_processed"
    ONBOARDING_WEBHOOK_FAILED = "onboarding.webhook_failed"

    # Stripe
    STRIPE_CUSTOMER_CREATED = "stripe.customer_created"
    STRIPE_CUSTOMER_UPDATED = "stripe.customer_updated"
    STRIPE_CUSTOMER_DELETED = "stripe.customer_deleted"
    STRIPE_CUSTOMER_SYNC_FAILED = "stripe.customer_sync_failed"
    STRIPE_CONNECTED_ACCOUNT_CREATED = "stripe.connected_account_created"


EVENT_DOMAINS: tuple[str, ...] = (
    "auth",
    "user",
    "practice",
    "payment",
    "intake",
    "onboarding",
    "stripe",
)

_KNOWN_VALUES: frozenset[str] = frozenset(e.value for e in EventType)


def event_type_value(event_type: EventType | str) -> str:
    """Normaliza EventType | str al string persistido. Otro tipo -> TypeError."""
    if isinstance(event_type, EventType):
        return event_type.value
    if not isinstance(event_type, str):
        raise TypeError(f"event type must be a string, got {type(event_type).__name__}")
    return event_type.strip()


def is_valid_event_type(value: EventType | str) -> bool:
    """True si el valor pertenece a la taxonomía conocida."""
    if not isinstance(value, str):
        return False
    return event_type_value(value) in _KNOWN_VALUES


def get_event_types_by_domain(domain: str) -> list[EventType]:
    """Devuelve los tipos de un dominio ("payment" -> [PAYMENT_*...])."""
    prefix = f"{domain.strip().lower()}."
    return [e for e in EventType if e.value.startswith(prefix)]
