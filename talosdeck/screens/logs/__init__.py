from talosdeck.screens.logs.logs_screen import LogsScreen
from talosdeck.screens.logs.presenter import LogsPresenter, parse_filter_query

__all__ = ["LogsPresenter", "LogsScreen", "parse_filter_query"]
