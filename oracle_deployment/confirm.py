from typing import Any, Sequence

from oracle_deployment.constants import ZERO_ADDRESS
from oracle_deployment.ledger import Transaction
from oracle_deployment.utils import same_address


def _abort() -> None:
    print("Aborting deployment!")
    exit(-1)


def _continue() -> None:
    """Asks the user to continue."""
    answer = input("Continue Y/N? ")
    if answer.lower().strip() == "n":
        _abort()


def _confirm_zero_address() -> None:
    answer = input("Zero Address detected for transaction argument; Continue? Y/N? ")
    if answer.lower().strip() == "n":
        _abort()


def _contains_zero_address(args: Sequence[Any]) -> bool:
    for value in args:
        if isinstance(value, (list, tuple)):
            if _contains_zero_address(value):
                return True
        elif same_address(value, ZERO_ADDRESS):
            return True
    return False


def _confirm_transaction(transaction: Transaction) -> None:
    """Asks the user to confirm a single transaction before it is submitted."""
    answer = input(f"Submit {transaction} Y/N? ")
    if answer.lower().strip() == "n":
        _abort()
    if _contains_zero_address(transaction.args):
        _confirm_zero_address()
