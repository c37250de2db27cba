"""
Aave V3 CLI commands for inspecting packed configuration words and account risk.

CLI Commands:
    aave decode-config WORD - Print every field of a packed reserve configuration word
    aave decode-user-config WORD - Print the collateral and borrowing flags per reserve id
    aave account USER - Load the market from chain and print the user's account data
"""

import dataclasses

import click
import eth_typing

from lendrisk.aave.deployments import get_deployment
from lendrisk.aave.libraries.generic_logic import calculate_user_account_data
from lendrisk.aave.libraries.percentage_math import PERCENTAGE_FACTOR
from lendrisk.aave.libraries.reserve_configuration import MAX_RESERVES_COUNT, ReserveConfiguration
from lendrisk.aave.libraries.user_configuration import UserConfiguration
from lendrisk.aave.libraries.wad_ray_math import RAY
from lendrisk.aave.onchain import AaveV3PoolReader
from lendrisk.checksum_cache import get_checksum_address
from lendrisk.cli import cli
from lendrisk.cli.utils import get_web3_from_config
from lendrisk.exceptions import LendriskError


def _parse_word(word: str) -> int:
    try:
        value = int(word, 0)
    except ValueError:
        raise click.BadParameter(f"{word!r} is not an integer") from None
    if value < 0:
        raise click.BadParameter("configuration words are unsigned")
    return value


def _format_percentage(value: int) -> str:
    return f"{value / (PERCENTAGE_FACTOR // 100):.2f}%"


@cli.group()
def aave() -> None:
    """
    Aave V3 commands
    """


@aave.command("decode-config")
@click.argument("word")
def aave_decode_config(word: str) -> None:
    """
    Decode a packed reserve configuration word (decimal or 0x-prefixed hex).
    """

    config = ReserveConfiguration.decode(_parse_word(word))
    for field in dataclasses.fields(config):
        click.echo(f"{field.name}: {getattr(config, field.name)}")


@aave.command("decode-user-config")
@click.argument("word")
def aave_decode_user_config(word: str) -> None:
    """
    Decode a packed user configuration bitmap (decimal or 0x-prefixed hex).
    """

    user_config = UserConfiguration(_parse_word(word))
    if user_config.is_empty():
        click.echo("No collateral or borrow positions.")
        return

    for reserve_id in range(MAX_RESERVES_COUNT):
        if not user_config.is_using_as_collateral_or_borrowing(reserve_id):
            continue
        flags = user_config.decode(reserve_id)
        click.echo(
            f"reserve {reserve_id}: collateral={flags.is_collateral} "
            f"borrowing={flags.is_borrowing}"
        )


@aave.command("account")
@click.argument("user")
@click.option(
    "--chain-id",
    "chain_id",
    type=int,
    default=eth_typing.ChainId.ETH,
    show_default=True,
    help="Chain ID of the Aave V3 market",
)
@click.option(
    "--block",
    "block_number",
    type=int,
    default=None,
    help="Block number to read state at (default: chain head)",
)
def aave_account(user: str, chain_id: int, block_number: int | None) -> None:
    """
    Calculate the account data for USER on the Aave V3 market of the given chain.
    """

    try:
        user = get_checksum_address(user)
    except ValueError:
        raise click.BadParameter(f"{user!r} is not a valid address") from None

    try:
        # Registers the configured endpoint, which the reader then resolves by chain ID
        get_web3_from_config(chain_id=chain_id)
        reader = AaveV3PoolReader.from_deployment(
            get_deployment(chain_id), block_identifier=block_number
        )
        user_e_mode = reader.get_user_e_mode(user)
        market = reader.load_market_state(extra_e_mode_categories=(user_e_mode,))
        params = reader.load_user_account_params(
            user=user, reserves=market.reserves, user_e_mode_category=user_e_mode
        )
        account = calculate_user_account_data(market=market, params=params)
    except LendriskError as exc:
        raise click.ClickException(exc.message or str(exc)) from exc

    click.echo(f"block: {reader.block_identifier}")
    click.echo(f"e-mode category: {params.user_e_mode_category}")
    click.echo(f"total collateral (base): {account.total_collateral_base}")
    click.echo(f"total debt (base): {account.total_debt_base}")
    click.echo(f"available borrows (base): {account.available_borrows_base}")
    click.echo(f"average LTV: {_format_percentage(account.avg_ltv)}")
    click.echo(
        f"average liquidation threshold: {_format_percentage(account.avg_liquidation_threshold)}"
    )
    if account.has_debt:
        click.echo(f"health factor: {account.health_factor / RAY:.4f}")
    else:
        click.echo("health factor: no debt")
    click.echo(f"zero LTV collateral: {account.has_zero_ltv_collateral}")
    click.echo(f"liquidatable: {account.is_liquidatable}")
