import getpass
import sys
from pathlib import Path

import psycopg2
from dotenv import load_dotenv

_project_root = Path(__file__).resolve().parents[1]
if str(_project_root) not in sys.path:
    sys.path.append(str(_project_root))

from streamhub import app_context  # noqa: E402
from streamhub.app.errors import AuthError  # noqa: E402
from streamhub.app.realtime import ChangeFeed  # noqa: E402
from streamhub.app.services.accounts import get_account_service  # noqa: E402
from streamhub.app.services.catalog import get_catalog_repository  # noqa: E402
from streamhub.config import load_app_config  # noqa: E402

load_dotenv()


def main():
    config = load_app_config()

    def _no_request_user(*args, **kwargs):
        raise RuntimeError("No request user in a command-line session")

    app_context.configure(
        get_conn=lambda: psycopg2.connect(**config.db_settings()),
        get_current_user=_no_request_user,
        change_feed=ChangeFeed(),
        config=config,
    )

    email = input("Admin email: ").strip()
    full_name = input("Full name: ").strip()
    password = getpass.getpass("Password: ")

    service = get_account_service()
    try:
        result = service.sign_up(email, password, full_name)
        user_id = result.user.id
    except AuthError as exc:
        if exc.status_code != 400 or "already exists" not in exc.message:
            raise
        session = service.sign_in(email, password)
        user_id = session.identity.id

    if get_catalog_repository().update_user(user_id, {"is_admin": True}) is None:
        print("No profile row exists for this account; check the provisioning logs.")
        return
    print(f"Done. {email} is now an administrator.")


if __name__ == "__main__":
    main()
