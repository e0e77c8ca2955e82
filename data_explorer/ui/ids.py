from __future__ import annotations

__all__ = ["IDs", "module_output_id", "group_tabs_id", "add_card_id"]


class IDs:
    class Store:
        SESSION_ID = "session-id"
        FILTER_VERSION = "filter-version"
        REPORT_VERSION = "report-version"
        TIMEZONE = "client-timezone"
        ACTIVE_MODULE = "active-module"
        TIMEZONE_ACK = "client-timezone-ack"

    class Control:
        # Lifecycle / splash
        URL = "url"
        MAIN_UI_CONTAINER = "main-ui-container"
        SPLASH = "splash"
        DATA_POLL = "data-poll"
        SPLASH_PROGRESS = "splash-progress"
        SPLASH_STATUS = "splash-status"
        PASSWORD_FORM = "password-form"
        PASSWORD_INPUT = "password-input"
        PASSWORD_SUBMIT = "password-submit"
        PASSWORD_FEEDBACK = "password-feedback"

        # Tabs + filter panel
        MODULE_TABS = "module-tabs"
        FILTER_DATASET = "filter-dataset-select"
        FILTER_VARIABLE = "filter-variable-select"
        FILTER_VALUES = "filter-values-select"
        FILTER_APPLY_BTN = "filter-apply-btn"
        FILTER_CLEAR_BTN = "filter-clear-btn"
        FILTER_ACTIVE_LIST = "filter-active-list"
        BOOKMARK_BTN = "bookmark-btn"
        BOOKMARK_STATUS = "bookmark-status"

        # Footer
        IDENTIFIER = "session-identifier"
        SESSION_INFO_LINK = "session-info-link"
        SESSION_INFO_MODAL = "session-info-modal"
        SESSION_INFO_TEXT = "session-info-text"
        LOCKFILE_LINK = "lockfile-link"
        LOCKFILE_DOWNLOAD = "lockfile-download"

        # Report previewer
        REPORT_DOWNLOAD_BTN = "report-download-btn"
        REPORT_DOWNLOAD = "report-download"
        REPORT_RESET_BTN = "report-reset-btn"
        REPORT_STATUS = "report-status"

    class Pattern:
        # pattern-matching "type" strings
        MODULE_OUTPUT = "module-output"
        GROUP_TABS = "module-group-tabs"
        ADD_CARD = "module-add-card"
        REMOVE_FILTER = "filter-remove"


def module_output_id(module_id: str) -> dict:
    return {"type": IDs.Pattern.MODULE_OUTPUT, "index": module_id}


def group_tabs_id(group_id: str) -> dict:
    return {"type": IDs.Pattern.GROUP_TABS, "index": group_id}


def add_card_id(module_id: str) -> dict:
    return {"type": IDs.Pattern.ADD_CARD, "index": module_id}
