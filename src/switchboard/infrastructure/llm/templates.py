"""Prompt templates shipped with the package."""

from functools import lru_cache

from jinja2 import Environment, PackageLoader, Template


@lru_cache(maxsize=1)
def create_jinja_env() -> Environment:
    """templates/ 以下の .j2 を読み込む Environment

    プロンプトはプレーンテキストなので autoescape は無効。
    ブロックタグの行は出力に残らない (trim_blocks / lstrip_blocks)。
    """
    return Environment(
        loader=PackageLoader("switchboard.infrastructure.llm", "templates"),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def load_template(name: str) -> Template:
    return create_jinja_env().get_template(name)
