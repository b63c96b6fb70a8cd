import pytest

from coldbot.auth.admin import is_admin, parse_admin_emails


def test_parse_trims_lowercases_and_drops_empty_entries():
    assert parse_admin_emails(" Boss@ColdBot.fr, ,ops@coldbot.fr,") == frozenset({"boss@coldbot.fr", "ops@coldbot.fr"})


@pytest.mark.parametrize("raw", [None, "", " , "])
def test_empty_configuration_has_no_admins(raw):
    assert parse_admin_emails(raw) == frozenset()


@pytest.mark.parametrize(
    "email, expected",
    [
        ("boss@coldbot.fr", True),
        ("  BOSS@coldbot.FR ", True),
        ("boss@coldbot.fr.evil", False),
        ("", False),
        (None, False),
    ],
)
def test_membership_is_case_insensitive_and_exact(email, expected):
    assert is_admin(email, parse_admin_emails("boss@coldbot.fr")) is expected
