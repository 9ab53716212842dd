import pytest

from loan_tracker.config import TrackerConfig

TWO_MONTH_FEED = "Fecha\tMes\tValor\n01/01/2024\tEnero\t$500.000\n01/02/2024\tFebrero\t$500.000\n"

MESSY_FEED = "\r\n".join(
    [
        "Valor\tNota\tFECHA\tmes",
        "$1.274.000\tprimer pago\t06/03/24\tMarzo",
        "",
        "$ 300.000\t\t28/04/24\tAbril",
        "\t\t\t",
        "$200.000\tdoble\t30/04/2024\tAbril",
        "$50.000\tsin fecha\t31/02/24\tFebrero",
        "abc\tmal valor\t15/05/24\tMayo",
        "$10.000\t\tpendiente\t",
    ]
)


def make_config(total_principal=1_000_000, **kwargs) -> TrackerConfig:
    kwargs.setdefault("feed_url", "https://example.test/feed.tsv")
    return TrackerConfig(total_principal=total_principal, **kwargs)


@pytest.fixture()
def config():
    return make_config()


@pytest.fixture()
def two_month_feed():
    return TWO_MONTH_FEED


@pytest.fixture()
def messy_feed():
    return MESSY_FEED
