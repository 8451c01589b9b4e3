"""Startup config logging never leaks credentials."""

from donatepay.common.startup import redacted_config


def test_secret_is_redacted(settings):
    shown = redacted_config(settings, ["stripe_secret_key", "default_currency"])

    assert shown == {"stripe_secret_key": "<redacted>", "default_currency": "eur"}


def test_missing_secret_is_reported_unset(settings):
    empty = settings.model_copy(update={"stripe_secret_key": ""})

    assert redacted_config(empty, ["stripe_secret_key"]) == {"stripe_secret_key": "<unset>"}
