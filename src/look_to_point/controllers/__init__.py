from .base import HeadController
from .dummy import DummyHeadController
from .http import HTTPHeadController
