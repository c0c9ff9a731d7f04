import pytest

from services.auth import Allowlist
from services.message import ChannelType
from services.users import map_user


class TestAllowlist:

    @pytest.mark.parametrize("configured", [None, [], ()])
    @pytest.mark.parametrize("user_id", ["1", "42", "", "anyone"])
    def test_empty_allows_everyone(self, configured, user_id):
        gate = Allowlist(configured)
        assert gate.restricted is False
        assert gate.is_allowed(user_id) is True

    @pytest.mark.parametrize("user_id, expected", [
        ("111", True),
        ("222", True),
        ("333", False),
        ("11", False),    # exact match only
        (" 111", False),
    ])
    def test_membership(self, user_id, expected):
        gate = Allowlist(["111", "222"])
        assert gate.restricted is True
        assert gate.is_allowed(user_id) is expected


class TestMapUser:

    def test_namespaced_identity(self, make_sender):
        user = map_user(ChannelType.TELEGRAM, make_sender(user_id=555), Allowlist())

        assert user.id == "telegram:555"
        assert user.channel_specific_id == "555"
        assert user.channel_type == ChannelType.TELEGRAM
        assert user.metadata == {"username": "ada", "language_code": "en"}

    def test_display_name_joins_last_name(self, make_sender):
        user = map_user(ChannelType.TELEGRAM, make_sender(first_name="Ada", last_name="Lovelace"), Allowlist())
        assert user.display_name == "Ada Lovelace"

    def test_display_name_first_only(self, make_sender):
        user = map_user(ChannelType.TELEGRAM, make_sender(first_name="Ada", last_name=None), Allowlist())
        assert user.display_name == "Ada"

    def test_optional_metadata(self, make_sender):
        user = map_user(ChannelType.TELEGRAM, make_sender(username=None, language_code=None), Allowlist())
        assert user.metadata == {"username": None, "language_code": None}

    def test_no_sender(self):
        assert map_user(ChannelType.TELEGRAM, None, Allowlist()) is None

    def test_rejected_by_allowlist(self, make_sender):
        assert map_user(ChannelType.TELEGRAM, make_sender(user_id=999), Allowlist(["111"])) is None

    def test_allowlist_checks_native_id(self, make_sender):
        user = map_user(ChannelType.TELEGRAM, make_sender(user_id=111), Allowlist(["111"]))
        assert user is not None
