import logging
import sys

FORMAT = 'mpris-widget-%(levelname)s: %(name)s: %(message)s'


def setup_logging(debug=False):
    root = logging.getLogger('mpris_widget')
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(FORMAT))
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if debug else logging.WARNING)
    return root
