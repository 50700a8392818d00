import logging
import os
from pathlib import Path

from cryptography.fernet import Fernet, InvalidToken
from pydantic import ValidationError

from .models import Session


# 0o700 = Owner has read/write/execute, others have no access
DIR_PERMISSIONS = 0o700
# 0o600 = Owner has read/write, others have no access
FILE_PERMISSIONS = 0o600

DEFAULT_STORAGE_DIR = Path.home() / ".baasclient"

logger = logging.getLogger(__name__)


class SecureSessionStorage:
    """
    # Secure Session Storage

    Encrypted on-disk storage for the current `Session`, using Fernet
    symmetric encryption (AES-128 in CBC mode with HMAC authentication).

    ## Storage Structure:
    ```
    ~/.baasclient/             # Storage directory (mode 0o700)
    ├── key.enc                # Encryption key (mode 0o600)
    └── session.enc            # Encrypted session JSON (mode 0o600)
    ```

    ## Failure Handling:
    Storage is best-effort: I/O and decryption failures are logged and
    reported as `False`/`None` so a broken disk never breaks sign-in or
    token refresh.

    ## Example:
    ```python
    storage = SecureSessionStorage()
    storage.save_session(session)
    restored = storage.load_session()
    ```
    """

    def __init__(self, storage_dir: str | Path | None = None) -> None:
        self.storage_dir = Path(storage_dir or DEFAULT_STORAGE_DIR)
        self.storage_dir.mkdir(parents=True, exist_ok=True, mode=DIR_PERMISSIONS)

        self.session_file = self.storage_dir / "session.enc"
        self.key_file = self.storage_dir / "key.enc"

        self._initialize_encryption_key()

    def _initialize_encryption_key(self) -> None:
        """
        Load the Fernet key from `key.enc`, generating and saving one on first use.

        Losing the key means losing access to the saved session.
        """
        if self.key_file.exists():
            with open(self.key_file, "rb") as f:
                self.key = f.read()
        else:
            self.key = Fernet.generate_key()
            with open(self.key_file, "wb") as f:
                f.write(self.key)
            # Unix only - no effect on Windows
            os.chmod(self.key_file, FILE_PERMISSIONS)

        self.cipher_suite = Fernet(self.key)

    def save_session(self, session: Session) -> bool:
        """
        Encrypt and write `session` to disk.

        ## Returns:
        - `bool`: True if saved, False if an error occurred
        """
        try:
            encrypted_data = self.cipher_suite.encrypt(
                session.model_dump_json().encode("utf-8")
            )
            with open(self.session_file, "wb") as f:
                f.write(encrypted_data)
            os.chmod(self.session_file, FILE_PERMISSIONS)

            logger.debug("Session saved to encrypted storage")
            return True

        except OSError as e:
            logger.error(f"Failed to save session: {e}", exc_info=True)
            return False

    def load_session(self) -> Session | None:
        """
        Read and decrypt the saved session.

        ## Returns:
        - `Session`: The saved session
        - `None`: If nothing is saved or the file cannot be decrypted or parsed
        """
        if not self.session_file.exists():
            logger.debug("No saved session found in storage")
            return None

        try:
            with open(self.session_file, "rb") as f:
                encrypted_data = f.read()

            decrypted_data = self.cipher_suite.decrypt(encrypted_data)
            session = Session.model_validate_json(decrypted_data)

            logger.debug("Session loaded from encrypted storage")
            return session

        except (OSError, InvalidToken, ValidationError) as e:
            logger.error(f"Failed to load session: {e}", exc_info=True)
            return None

    def delete_session(self) -> bool:
        """
        Delete the saved session. The encryption key is kept.

        ## Returns:
        - `bool`: True if deleted or nothing was saved, False on error
        """
        try:
            if self.session_file.exists():
                self.session_file.unlink()
                logger.debug("Saved session deleted from storage")
            return True

        except OSError as e:
            logger.error(f"Failed to delete session: {e}", exc_info=True)
            return False

    def has_saved_session(self) -> bool:
        """Check whether a session file exists. Does not validate it."""
        return self.session_file.exists()
