class WidgetError(Exception):
    pass


class MetadataError(WidgetError):
    pass


class ActionError(WidgetError):
    def __init__(self, action, stderr, returncode):
        self.action = action
        self.stderr = stderr
        self.returncode = returncode
        super().__init__(stderr.strip()
                         or f'{action} failed with exit code {returncode}')


class ChannelUnavailable(WidgetError):
    pass


class ChannelBindError(WidgetError):
    pass


class UsageError(WidgetError):
    pass
