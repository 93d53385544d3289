import sys
from pathlib import Path

from dotenv import load_dotenv
from rq import Worker

load_dotenv()

sys.path.insert(0, str(Path(__file__).parent / "src"))

from teachclone.api.queue import get_queue, get_redis  # noqa: E402


def main() -> None:
    conn = get_redis()
    worker = Worker([get_queue()], connection=conn)
    worker.work()


if __name__ == "__main__":
    main()
