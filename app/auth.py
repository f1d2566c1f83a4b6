# ==============================================================================
# app/auth.py
# ------------------------------------------------------------------------------
# Shared-password gate for the office. The session state lives in whatever
# mapping is handed in (the Flask session in views, a plain dict in tests).
# ==============================================================================

import hmac
import logging

SESSION_KEY = 'office_authenticated'
OFFICE_ID_KEY = 'office_id'


class OfficeSession:
    """
    Login state of one browser session.

    Args:
        storage (MutableMapping): Where the state is kept, e.g. `flask.session`.
        password (str): The office's shared password.
        office_id (str): Office the password unlocks.
        office_name (str): Display name of the office.
    """

    def __init__(self, storage, password, office_id, office_name=''):
        self.storage = storage
        self._password = password
        self._office_id = office_id
        self.office_name = office_name

    @classmethod
    def from_app(cls, storage, config):
        return cls(storage, config['APP_PASSWORD'], config['OFFICE_ID'], config.get('OFFICE_NAME', ''))

    @property
    def is_authenticated(self):
        return bool(self.storage.get(SESSION_KEY)) and self.storage.get(OFFICE_ID_KEY) is not None

    @property
    def office_id(self):
        return self.storage.get(OFFICE_ID_KEY) if self.is_authenticated else None

    def login(self, password):
        """Returns True and marks the session as logged in when the password matches."""
        if not password or not hmac.compare_digest(str(password).encode('utf-8'),
                                                   str(self._password).encode('utf-8')):
            logging.warning("Office login rejected: wrong password.")
            return False
        self.storage[SESSION_KEY] = True
        self.storage[OFFICE_ID_KEY] = self._office_id
        logging.info(f"Office session started for {self._office_id}")
        return True

    def logout(self):
        self.storage.pop(SESSION_KEY, None)
        self.storage.pop(OFFICE_ID_KEY, None)
