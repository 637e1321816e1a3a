"""API schemas package."""

from .common import *
from .chat import *
from .workflows import *
from .settings import *
from .usage import *
from .tiers import *
from .billing import *
