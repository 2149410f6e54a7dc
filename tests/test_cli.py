"""
Settings and start-up pipeline tests
"""

import pytest

from zettelpresenter.__main__ import env_check, parser
from zettelpresenter.config.settings import AppSettings
from zettelpresenter.models.state import ProgramState, pipeline


class TestSettings:
    """pydantic-settings configuration"""

    def test_defaults(self):
        settings = AppSettings()
        assert settings.listen_address == ":23120"
        assert settings.slideset_role == "slideset"

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("ZETTELPRESENTER_COMPLETION_TIMEOUT", "5")
        monkeypatch.setenv("ZETTELPRESENTER_AUTHOR", "Jane Doe")
        settings = AppSettings()
        assert settings.completion_timeout == 5.0
        assert settings.author == "Jane Doe"

    @pytest.mark.parametrize(
        "address, expected",
        [(":23120", ("0.0.0.0", 23120)), ("127.0.0.1:8080", ("127.0.0.1", 8080))],
    )
    def test_listen_address(self, address, expected):
        assert AppSettings().listenAddress_split(address) == expected

    @pytest.mark.parametrize("address", ["localhost", "host:port"])
    def test_bad_listen_address(self, address):
        with pytest.raises(ValueError):
            AppSettings().listenAddress_split(address)


class TestCommandLine:
    """Argument parsing and environment check"""

    def state_make(self, *argv):
        state = ProgramState.state_createFromNamespace(parser.parse_args(list(argv)))
        state.verbosity = 0
        return state

    def test_arguments(self):
        options = parser.parse_args(["http://zs.example:23123", "-a", "-l", ":9000", "-vv"])
        assert options.url == "http://zs.example:23123"
        assert options.auth
        assert options.listen == ":9000"
        assert options.verbosity >= 2

    def test_credentials_from_url(self):
        state = pipeline(self.state_make("http://ann:pw@zs.example:23123/", "-l", ":9000"), env_check)
        assert state.envOK
        assert state.auth
        assert (state.username, state.password) == ("ann", "pw")
        assert state.url == "http://zs.example:23123/"
        assert (state.host, state.port) == ("0.0.0.0", 9000)

    def test_plain_url_keeps_auth_off(self):
        state = pipeline(self.state_make("http://zs.example"), env_check)
        assert not state.auth
        assert state.url == "http://zs.example"

    def test_bad_url(self):
        with pytest.raises(SystemExit):
            env_check(self.state_make("ftp://zs.example"))

    def test_bad_listen_address(self):
        with pytest.raises(SystemExit):
            env_check(self.state_make("http://zs.example", "-l", "nowhere"))
