# errors.py - failure kinds of the upload → chart pipeline
# Each carries the error code and HTTP status used by the JSON error envelope.


class AnalyticsError(Exception):
    code = "analytics_error"
    status = 400
    default_message = "Request could not be processed"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self):
        return {"ok": False, "error": self.code, "message": self.message}


class NotEnoughData(AnalyticsError):
    code = "not_enough_data"
    default_message = "File does not contain enough data"


class NoUsableColumns(AnalyticsError):
    code = "no_usable_columns"
    default_message = "Need at least one categorical and one numeric column"


class NoValidDataPoints(AnalyticsError):
    code = "no_valid_data_points"
    default_message = "No valid data points found with selected columns"


class ColumnNotFound(AnalyticsError):
    code = "column_not_found"
    default_message = "Selected columns not found in file"


class UnsupportedChartType(AnalyticsError):
    code = "bad_chart_type"
    default_message = "Unsupported chart type"


class AccessDenied(AnalyticsError):
    # same response as a missing record
    code = "not_found"
    status = 404
    default_message = "Resource not found or access denied"


class ParseFailure(AnalyticsError):
    code = "parse_failure"
    status = 422
    default_message = "Spreadsheet could not be read"


class DuplicateChart(AnalyticsError):
    code = "duplicate_chart"
    status = 409
    default_message = "An automatic chart of this type already exists for the file"
