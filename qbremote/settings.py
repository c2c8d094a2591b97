from dataclasses import dataclass

import dacite
import yaml


@dataclass
class ServerData:
    url: str
    username: str | None = None
    password: str | None = None
    # seconds, None means no total timeout
    timeout: float | None = None


@dataclass
class Data:
    server: ServerData
    log_path: str | None = None


def load_from_path(path: str) -> Data:
    with open(path, mode="r", encoding="utf-8") as fin:
        raw_data = yaml.safe_load(fin)
        data = dacite.from_dict(Data, raw_data, config=dacite.Config(cast=[float]))
        return data
