from .config import Config
from .errors import (WidgetError, MetadataError, ActionError,
                     ChannelUnavailable, ChannelBindError, UsageError)

__version__ = '0.1.0'
