"""
Tests for the Funding Orchestrator

Tests the transferred amount, balance checks, unconfirmed transfers and
the optional skip-if-funded policy.
"""

import pytest

from core.chain import transact
from core.config import FundingSettings
from core.schemas import (
    ErrorCodes,
    FundingException,
    InsufficientBalanceException,
    MissingConfigFieldException,
    Transaction,
    TransferNotConfirmedException,
)
from core.schemas.progress import ProgressKind
from orchestrator.funding import FundingOrchestrator

from fixtures import FUND_AMOUNT, deploy_stack, make_artifact, make_env


@pytest.fixture
def unfunded(dev_chain):
    """Stack whose factory holds no LINK yet."""
    return deploy_stack(dev_chain, fund=False)


def _balance(chain, token, owner):
    return chain.call_static(token, "balanceOf", [owner])


class TestFund:
    """Tests for FundingOrchestrator.fund."""

    def test_transfers_fund_amount(self, dev_chain, unfunded, local_ctx):
        """The factory receives exactly the configured amount."""
        target = unfunded.factory_artifact()
        sent = FundingOrchestrator().fund(target, make_env(link=unfunded.link), local_ctx)

        assert sent == FUND_AMOUNT
        assert _balance(dev_chain, unfunded.link, unfunded.factory) == FUND_AMOUNT
        assert _balance(dev_chain, unfunded.link, unfunded.deployer) == 10 ** 27 - FUND_AMOUNT

    def test_reports_funding_event(self, unfunded, local_ctx):
        FundingOrchestrator().fund(unfunded.factory_artifact(), make_env(link=unfunded.link), local_ctx)

        events = local_ctx.reporter.of_kind(ProgressKind.FUNDING_SENT)
        assert len(events) == 1
        assert events[0].data == {"amount": str(FUND_AMOUNT), "target": unfunded.factory}

    def test_refunds_by_default(self, dev_chain, unfunded, local_ctx):
        """Funding twice sends twice unless skip_if_funded is set."""
        funder = FundingOrchestrator()
        env = make_env(link=unfunded.link)
        funder.fund(unfunded.factory_artifact(), env, local_ctx)
        funder.fund(unfunded.factory_artifact(), env, local_ctx)

        assert _balance(dev_chain, unfunded.link, unfunded.factory) == 2 * FUND_AMOUNT

    def test_skip_if_funded(self, dev_chain, unfunded, local_ctx):
        """With skip_if_funded an already-funded target is left alone."""
        funder = FundingOrchestrator(FundingSettings(skip_if_funded=True))
        env = make_env(link=unfunded.link)

        assert funder.fund(unfunded.factory_artifact(), env, local_ctx) == FUND_AMOUNT
        assert funder.fund(unfunded.factory_artifact(), env, local_ctx) == 0
        assert _balance(dev_chain, unfunded.link, unfunded.factory) == FUND_AMOUNT

    def test_missing_amount(self, unfunded, local_ctx):
        """No fund amount is a configuration failure, not a zero transfer."""
        env = make_env(link=unfunded.link, fund_amount=None)
        with pytest.raises(MissingConfigFieldException):
            FundingOrchestrator().fund(unfunded.factory_artifact(), env, local_ctx)

    def test_missing_token(self, unfunded, local_ctx):
        with pytest.raises(MissingConfigFieldException):
            FundingOrchestrator().fund(unfunded.factory_artifact(), make_env(), local_ctx)


class TestFundFailures:
    """Tests for funding failures."""

    def test_insufficient_balance(self, dev_chain, local_ctx):
        """A deployer without LINK fails before sending anything."""
        other = dev_chain.accounts()[1]
        link = transact(dev_chain, Transaction.deploy(other, "LinkToken")).contract_address
        before = len(dev_chain.transactions)

        with pytest.raises(InsufficientBalanceException) as exc_info:
            FundingOrchestrator().fund(make_artifact(), make_env(link=link), local_ctx)

        assert exc_info.value.code == ErrorCodes.INSUFFICIENT_BALANCE
        assert len(dev_chain.transactions) == before

    def test_transfer_not_confirmed(self, dev_chain, unfunded, local_ctx):
        """A transfer that never confirms raises TransferNotConfirmed."""
        dev_chain.inject_stall("transfer")
        with pytest.raises(TransferNotConfirmedException):
            FundingOrchestrator().fund(unfunded.factory_artifact(), make_env(link=unfunded.link), local_ctx)
        assert local_ctx.reporter.of_kind(ProgressKind.FUNDING_SENT) == []

    def test_transfer_reverted(self, dev_chain, unfunded, local_ctx):
        """A rejected transfer raises FundingException."""
        dev_chain.inject_revert("transfer", reason="token paused")
        with pytest.raises(FundingException, match="token paused") as exc_info:
            FundingOrchestrator().fund(unfunded.factory_artifact(), make_env(link=unfunded.link), local_ctx)
        assert exc_info.value.code == ErrorCodes.FUNDING_ERROR
