from argparse import Namespace
from types import SimpleNamespace

import pytest

from juriscloud.auth.utils import create_confirmation_token
from juriscloud.gateway.auth import AuthGateway
from juriscloud.gateway.errors import AuthError
from juriscloud.models import ProfileStatus
from juriscloud_cli import confirm_account

EMAIL = "stagiaire@cabinet-martin.fr"


@pytest.fixture
async def pending(gateway):
    auth = AuthGateway(gateway, auto_confirm=False, send_confirmation=lambda user, token: None)
    response = await auth.sign_up(EMAIL, "motdepasse")
    return SimpleNamespace(auth=auth), response.user


async def test_confirm_with_the_link_token(pending, capsys):
    app, user = pending
    await confirm_account(app, Namespace(token=create_confirmation_token(user.id), email=None))
    assert "confirmé" in capsys.readouterr().out
    assert (await app.auth.sign_in_with_password(EMAIL, "motdepasse")).session is not None


async def test_confirm_rejects_a_forged_token(pending):
    app, user = pending
    with pytest.raises(AuthError):
        await confirm_account(app, Namespace(token="forged", email=None))
    profile = await app.auth._find_profile(email=EMAIL)
    assert profile["status"] == ProfileStatus.PENDING


async def test_operator_override_by_email(pending):
    app, user = pending
    await confirm_account(app, Namespace(token=None, email=EMAIL))
    profile = await app.auth._find_profile(email=EMAIL)
    assert profile["status"] == ProfileStatus.ACTIVE
