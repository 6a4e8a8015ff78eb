from types import SimpleNamespace

import pytest
from slack_sdk.errors import SlackApiError

from adapters.slack_poster import SlackPoster
from adapters.slack_sink import SlackSink, mention
from conftest import RecordingSink, message
from core.config import AppSettings
from core.domain.models import AttachmentField, EntityAttachment


class FakeWebClient:
    def __init__(self, error=None):
        self.posted = []
        self._error = error

    def chat_postMessage(self, **kwargs):
        self.posted.append(kwargs)
        if self._error is not None:
            raise self._error
        return {"ok": True, "channel": kwargs["channel"]}

    def auth_test(self):
        return SimpleNamespace(data={"ok": True, "team": "acme", "user": "octanebot"})


@pytest.fixture
def settings_without_token():
    return AppSettings(_env_file=None)


@pytest.mark.asyncio
async def test_post_message_with_attachment(settings_without_token):
    client = FakeWebClient()
    poster = SlackPoster(settings_without_token, client=client)
    attachment = EntityAttachment(
        title="ID: 5 | x | Phase: New",
        color="#b21646",
        fields=[AttachmentField(title="Severity", value="High", short=True)],
        mrkdwn_in=["fields"],
        fallback="ID: 5 - x - Phase:New\n",
    )
    assert await poster.post_message("C123", attachments=[attachment])

    posted = client.posted[0]
    assert posted["channel"] == "C123"
    assert posted["attachments"][0]["color"] == "#b21646"
    assert posted["attachments"][0]["mrkdwn_in"] == ["fields"]
    assert posted["attachments"][0]["fields"] == [{"title": "Severity", "value": "High", "short": True}]


@pytest.mark.asyncio
async def test_rejected_message(settings_without_token, caplog):
    error = SlackApiError("channel_not_found", {"ok": False, "error": "channel_not_found"})
    poster = SlackPoster(settings_without_token, client=FakeWebClient(error=error))
    assert not await poster.post_message("C404", text="hi")
    assert "channel_not_found" in caplog.text


@pytest.mark.asyncio
async def test_network_error(settings_without_token):
    poster = SlackPoster(settings_without_token, client=FakeWebClient(error=ConnectionError("reset")))
    assert not await poster.post_message("C123", text="hi")


@pytest.mark.asyncio
async def test_auth_test(settings_without_token):
    body = await SlackPoster(settings_without_token, client=FakeWebClient()).auth_test()
    assert body["team"] == "acme"


def test_token_is_required(settings_without_token):
    with pytest.raises(ValueError):
        SlackPoster(settings_without_token)


def test_real_client_uses_configured_api_url():
    settings = AppSettings(_env_file=None, slack_token="xoxb-test", slack_api_url="https://slack.example.com/api")
    poster = SlackPoster(settings)
    assert poster._client.base_url == "https://slack.example.com/api/"
    assert poster._client.token == "xoxb-test"


@pytest.mark.asyncio
async def test_slack_sink_prefixes_console_user_and_echoes(settings_without_token):
    client = FakeWebClient()
    echo = RecordingSink()
    sink = SlackSink(SlackPoster(settings_without_token, client=client), "C999", echo=echo)

    await sink.reply(message("octane status"), "Global status: idle")
    await sink.send(message("octane status"), "plain")

    assert client.posted[0] == {"channel": "C123", "text": "alice: Global status: idle"}
    assert client.posted[1] == {"channel": "C123", "text": "plain"}
    assert echo.replies == ["Global status: idle"]
    assert echo.sent == ["plain"]


@pytest.mark.asyncio
async def test_slack_sink_reports_undelivered_attachment(settings_without_token):
    error = SlackApiError("invalid_attachments", {"ok": False, "error": "invalid_attachments"})
    echo = RecordingSink()
    sink = SlackSink(SlackPoster(settings_without_token, client=FakeWebClient(error=error)), "C999", echo=echo)
    assert not await sink.send_attachment(message("x"), EntityAttachment(title="t"))
    assert echo.attachments == []


@pytest.mark.asyncio
async def test_slack_sink_mentions_slack_user_ids(settings_without_token):
    client = FakeWebClient()
    sink = SlackSink(SlackPoster(settings_without_token, client=client), "C999")

    await sink.reply(message("octane status", user="U024BE7LH"), "Global status: idle")

    assert client.posted[0]["text"] == "<@U024BE7LH>: Global status: idle"


def test_mention_only_wraps_slack_ids():
    assert mention("W0123ABCD") == "<@W0123ABCD>"
    assert mention("alice") == "alice"
    assert mention("Ubuntu") == "Ubuntu"
