from redis import Redis
from rq import Queue

from teachclone.utils.config_loader import get_settings

QUEUE_NAME = "teachclone"


def get_redis() -> Redis:
    return Redis.from_url(get_settings().redis_url)


def get_queue() -> Queue:
    return Queue(QUEUE_NAME, connection=get_redis())
