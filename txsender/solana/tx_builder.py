"""
Transaction assembly for smart transactions.

This module orders the compute budget, caller and tip instructions and
compiles them into a signed v0 transaction.
"""

import random
from typing import List, Optional, Sequence

from loguru import logger
from solders.address_lookup_table_account import AddressLookupTableAccount
from solders.compute_budget import set_compute_unit_limit, set_compute_unit_price
from solders.message import CompileError as SoldersCompileError
from solders.errors import SignerError
from solders.hash import Hash
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.message import MessageV0
from solders.pubkey import Pubkey
from solders.system_program import TransferParams, transfer
from solders.transaction import VersionedTransaction

from txsender.api.jito_client import JITO_TIP_ACCOUNTS
from txsender.config import MAX_COMPUTE_UNIT_LIMIT, MIN_JITO_TIP_LAMPORTS
from txsender.solana.errors import CompileError, SigningError
from txsender.solana.models import JitoConfig


def instruction_accounts(instructions: Sequence[Instruction]) -> List[Pubkey]:
    """
    Accounts referenced by ``instructions``: every account key, then every
    program id.
    """
    accounts = [meta.pubkey for ix in instructions for meta in ix.accounts]
    accounts.extend(ix.program_id for ix in instructions)
    return accounts


def create_tip_instruction(payer: Pubkey, tips: int, rng: Optional[random.Random] = None) -> Instruction:
    """
    Create a Jito tip transfer to a randomly chosen tip account.

    Args:
        payer: Account paying the tip
        tips: Requested tip in lamports, raised to the network minimum
        rng: Random source for picking the tip account

    Returns:
        System transfer instruction
    """
    tip_account = Pubkey.from_string((rng or random).choice(JITO_TIP_ACCOUNTS))
    tip_amount = max(tips, MIN_JITO_TIP_LAMPORTS)
    return transfer(TransferParams(from_pubkey=payer, to_pubkey=tip_account, lamports=tip_amount))


def build_instructions(
    instructions: Sequence[Instruction],
    payer: Pubkey,
    priority_fee: int = 0,
    jito: Optional[JitoConfig] = None,
    rng: Optional[random.Random] = None,
) -> List[Instruction]:
    """
    Lay out the instruction list without the compute unit limit.

    The fee-rate instruction leads when ``priority_fee`` is positive and the
    tip instruction trails when ``jito`` is set.
    """
    all_instructions: List[Instruction] = []

    if priority_fee > 0:
        all_instructions.append(set_compute_unit_price(priority_fee))

    all_instructions.extend(instructions)

    if jito is not None:
        all_instructions.append(create_tip_instruction(payer, jito.tips, rng))

    return all_instructions


def with_compute_unit_limit(instructions: Sequence[Instruction], cu_limit: int) -> List[Instruction]:
    """Prepend a compute unit limit instruction; a limit of 0 leaves the list unchanged."""
    if cu_limit <= 0:
        return list(instructions)
    return [set_compute_unit_limit(min(cu_limit, MAX_COMPUTE_UNIT_LIMIT)), *instructions]


def compile_transaction(
    payer: Pubkey,
    instructions: Sequence[Instruction],
    signers: Sequence[Keypair],
    lookup_tables: Sequence[AddressLookupTableAccount],
    blockhash: Hash,
) -> VersionedTransaction:
    """
    Compile and sign a v0 transaction.

    Args:
        payer: Fee payer
        instructions: Final, ordered instruction list
        signers: Keypairs that must sign
        lookup_tables: Address lookup tables for the message
        blockhash: Blockhash the transaction binds to

    Returns:
        Signed transaction

    Raises:
        CompileError: If the message cannot be compiled
        SigningError: If the signers do not match the message
    """
    try:
        message = MessageV0.try_compile(payer, list(instructions), list(lookup_tables), blockhash)
    except (SoldersCompileError, ValueError) as e:
        raise CompileError(f"Failed to compile message: {e}") from e

    try:
        transaction = VersionedTransaction(message, list(signers))
    except SignerError as e:
        raise SigningError(f"Failed to sign transaction: {e}") from e

    logger.debug(
        f"Compiled transaction with {len(instructions)} instructions",
        extra={"payer": str(payer), "blockhash": str(blockhash)}
    )

    return transaction
