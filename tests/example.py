"""Types built by the tests."""

from typing import Optional


class TimeZone:
    def __init__(self, label: str = "UTC"):
        self.label = label


class Clock:
    def __init__(self, time: str, zone: TimeZone):
        self.time = time
        self.zone = zone


class Report:
    def __init__(self, title, clock: Optional[Clock] = None, pages: int = 1):
        self.title = title
        self.clock = clock
        self.pages = pages


class Repository:
    def __init__(self, table: str = "default"):
        self.table = table


class UserRepository(Repository):
    pass


class AdminRepository(UserRepository):
    pass


class Storage:
    def __init__(self, root: str = "/"):
        self.root = root


class DiskStorage(Storage):
    pass


class Archive:
    def __init__(self, storage: Storage):
        self.storage = storage


class Publisher:
    def __init__(self, subscriber: "Subscriber"):
        self.subscriber = subscriber


class Subscriber:
    def __init__(self, publisher: Publisher):
        self.publisher = publisher


class Connection:
    def __init__(self, host: str, port: int):
        self.host = host
        self.port = port

    @classmethod
    def from_url(cls, url: str) -> "Connection":
        host, port = url.rsplit(":", 1)
        return cls(host, int(port))


class Transport:
    def __init__(self, name: str = "smtp"):
        self.name = name


class Mailer:
    def __init__(self):
        self.transports = []
        self.sender = None

    def add_transport(self, transport: Transport):
        self.transports.append(transport)

    def set_sender(self, sender, reply_to="noreply"):
        self.sender = (sender, reply_to)


class Chain:
    def __init__(self, head, *links):
        self.head = head
        self.links = links


class Handler:
    def __init__(self, name: str = "default"):
        self.name = name


class Pipeline:
    def __init__(self, *handlers: Handler):
        self.handlers = handlers


class Settings:
    def __init__(self, name, *, debug=False):
        self.name = name
        self.debug = debug


class Session:
    pass


class UserService:
    def __init__(self, session: Session):
        self.session = session


class OrderService:
    def __init__(self, session: Session):
        self.session = session


class Checkout:
    def __init__(self, users: UserService, orders: OrderService):
        self.users = users
        self.orders = orders


class Counter:
    created = 0

    def __init__(self):
        Counter.created += 1


class Broken:
    def __init__(self):
        raise RuntimeError("cannot build")


def make_zone(label: str) -> TimeZone:
    return TimeZone(label.upper())


CLOCK_RULES = {
    "zone": {"target": TimeZone, "construct_args": ["Europe/London"]},
    "clockA": {
        "target": Clock,
        "construct_args": ["now", {"target": TimeZone, "construct_args": ["Pacific/Nauru"]}],
    },
    "clockB": {"target": Clock, "construct_args": ["now", {"target": "zone"}]},
}
