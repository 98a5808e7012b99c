from app.models.instagram_account import InstagramAccount
from app.services.http_client import HttpxClient
from app.services.instagram_client import InstagramClient
from app.utils.encryption import decrypt_token


def build_instagram_client(account: InstagramAccount) -> InstagramClient:
    return InstagramClient(decrypt_token(account.encrypted_access_token))


def get_provider_factory():
    """Dependency returning account -> action provider; overridden in tests."""
    return build_instagram_client


def get_http_client():
    return HttpxClient()
