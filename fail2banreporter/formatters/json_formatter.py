import json
from collections.abc import Sequence

from ..jail import Jail
from .base import BaseFormatter, OutputType


class JsonFormatter(BaseFormatter):
    output_type = OutputType.JSON

    def format_data(self, jails: Sequence[Jail]) -> str:
        return json.dumps([jail.to_dict() for jail in jails], indent=2)
