from discovery.utils.security import redact_secrets_from_text


class TestRedactSecretsFromText:
    def test_query_string_keys(self):
        text = "GET https://maps.example.com/json?key=AIzaSecret&radius=1000"
        assert redact_secrets_from_text(text) == (
            "GET https://maps.example.com/json?key=[REDACTED]&radius=1000"
        )

    def test_bearer_and_openai_keys(self):
        out = redact_secrets_from_text("Authorization: Bearer sk-abcdefgh12345 failed")
        assert "sk-abcdefgh12345" not in out
        assert "Authorization: Bearer [REDACTED]" in out
        assert redact_secrets_from_text("key sk-proj_ABCDEFGH1234 leaked") == "key [REDACTED] leaked"

    def test_provider_headers(self):
        out = redact_secrets_from_text("X-Subscription-Token: brave-secret, X-API-KEY: serper-secret")
        assert "brave-secret" not in out
        assert "serper-secret" not in out

    def test_empty(self):
        assert redact_secrets_from_text("") == ""
