from .db import db
from .user import User
from .auth_log import AuthLog
from .session import Session
