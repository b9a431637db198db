from typing import Any

import msgspec

from .log_level import LogLevel


class Entry(msgspec.Struct, kw_only=True):
    message: str | None = None
    tags: set[str] = msgspec.field(
        default_factory=set,
    )
    level: LogLevel

    def fields(self) -> dict[str, Any]:
        return {
            name: getattr(self, name) for name in self.__struct_fields__
        }

    def render(self, template: str, **context: Any) -> str:
        values = self.fields()
        values["level"] = self.level.value
        values["tags"] = ",".join(sorted(self.tags))
        values.update(context)

        return template.format(**values)
