from marketpulse.publishing.publisher import LogPublisher, PublishError, publish_best_effort

__all__ = ["LogPublisher", "PublishError", "publish_best_effort"]
