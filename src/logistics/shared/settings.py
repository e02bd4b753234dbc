"""Runtime policy switches read from the ``[custom]`` section of domain.toml."""

from enum import Enum

from protean.utils.globals import current_domain


class TransitionPolicy(Enum):
    STRICT = "strict"
    PERMISSIVE = "permissive"


class PaymentCoupling(Enum):
    ON_CREATION = "on_creation"
    ON_COMPLETION = "on_completion"


DEFAULT_IDENTIFIER_MAX_ATTEMPTS = 10


def _custom(key: str, default):
    return current_domain.config["custom"].get(key, default)


def transition_policy() -> TransitionPolicy:
    return TransitionPolicy(_custom("TRANSITION_POLICY", TransitionPolicy.STRICT.value))


def payment_coupling() -> PaymentCoupling:
    return PaymentCoupling(_custom("PAYMENT_COUPLING", PaymentCoupling.ON_CREATION.value))


def identifier_max_attempts() -> int:
    return int(_custom("IDENTIFIER_MAX_ATTEMPTS", DEFAULT_IDENTIFIER_MAX_ATTEMPTS))
