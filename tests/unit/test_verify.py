import pytest
from rollbar_unfurler.errors import AuthMismatch
from rollbar_unfurler.slack.verify import verify_token

def test_verify_matching_token():
    """
    WHY: Requests carrying the configured verification token come from Slack.
    EXPECTED: No exception.
    """
    verify_token("test-verification-token", endpoint="/slack")

@pytest.mark.parametrize("token", ["", "forged", "test-verification-token "])
def test_verify_rejects_other_tokens(token):
    with pytest.raises(AuthMismatch):
        verify_token(token, endpoint="/slash")
