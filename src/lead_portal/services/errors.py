"""Exceptions raised by the recommendation services.

Scoring helpers never raise; only the data-loading layer does.
"""


class RecommendationError(Exception):
    """Base class for recommendation request failures."""

    status_code = 500


class OrderNotFoundError(RecommendationError):
    """The referenced order does not exist."""

    status_code = 404

    def __init__(self, order_id: str):
        super().__init__("Order not found")
        self.order_id = order_id


class DataFetchError(RecommendationError):
    """A read against the backing store failed.

    The message is the underlying driver error, passed through verbatim.
    """

    status_code = 500
