"""
Personalization profile resolution.

Decides which locale, timezone and currency every other stage renders with.
"""

from typing import Optional

from .currency import DEFAULT_CURRENCY_CODE, currency_for_locale
from .environment import Environment
from .results import PersonalizationProfile
from usage_analytics.config.loader import AppSettings
from usage_analytics.storage.models import DashboardSnapshot

PAID_PLAN_LABEL = "Paid"


def build_personalization(
    settings: AppSettings,
    snapshot: Optional[DashboardSnapshot],
    environment: Environment,
) -> PersonalizationProfile:
    """Resolve the personalization profile for one evaluation.

    With auto-detection enabled, locale and timezone come from the
    environment, the currency from the locale's region, and a positive plan
    limit in the previous snapshot marks the account as paid.

    With auto-detection disabled, the configured OpenAI organization string
    stands in for the locale identifier when set. That mirrors the behaviour
    the dashboard has always had even though the two values are unrelated;
    currency is pinned to USD and no plan is inferred.

    Args:
        settings: Application settings
        snapshot: Previously rendered dashboard state, if any
        environment: Source of the system locale and timezone

    Returns:
        PersonalizationProfile for this evaluation
    """
    if settings.advanced.auto_detect_preferences:
        locale_identifier = environment.locale_identifier()
        currency = currency_for_locale(locale_identifier) or DEFAULT_CURRENCY_CODE
        inferred_plan = None
        if snapshot is not None and snapshot.plan_limit > 0:
            inferred_plan = PAID_PLAN_LABEL
        return PersonalizationProfile(
            locale_identifier=locale_identifier,
            timezone_identifier=environment.timezone_identifier(),
            currency_code=currency,
            appearance=settings.appearance,
            inferred_plan=inferred_plan,
        )

    # TODO: confirm whether the organization fallback is intended before
    # replacing it with a dedicated locale setting.
    organization = settings.provider_settings.openai_organization
    return PersonalizationProfile(
        locale_identifier=organization or environment.locale_identifier(),
        timezone_identifier=environment.timezone_identifier(),
        currency_code=DEFAULT_CURRENCY_CODE,
        appearance=settings.appearance,
        inferred_plan=None,
    )
