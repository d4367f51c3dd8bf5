from talosdeck.models.logs.log_line import LogLine, TaggedLogLine

__all__ = ["LogLine", "TaggedLogLine"]
