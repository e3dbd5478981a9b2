"""
Environment Resolver Tests

Tests for:
1. Local networks: addresses from mock artifacts
2. Live networks: addresses from the static table
3. Fund amount lookup and default fallback
4. Missing fields and unknown networks
5. Table-only checks run before any step
"""

import pytest

from core.config import NetworkEntry, NetworkTable
from core.schemas import (
    MissingArtifactException,
    MissingConfigFieldException,
    NetworkContext,
    UnknownNetworkException,
)
from orchestrator.artifacts import ArtifactStore
from orchestrator.environment import EnvironmentResolver

from fixtures import FEE, FUND_AMOUNT, KEY_HASH, make_artifact


RINKEBY_LINK = "0x01BE23585060835E02B77ef475b0Cc51aA1e0709"
RINKEBY_VRF = "0xb3dCcb4Cf7a26f6cf6B120Cf5A73875B7BBc655B"
LINK_ADDR = "0x" + "11" * 20
VRF_ADDR = "0x" + "22" * 20


@pytest.fixture
def resolver():
    return EnvironmentResolver(NetworkTable())


@pytest.fixture
def mock_store():
    store = ArtifactStore()
    store.save(make_artifact("LinkToken", address=LINK_ADDR))
    store.save(make_artifact("VRFCoordinatorMock", address=VRF_ADDR, args=[LINK_ADDR]))
    return store


class TestNetworkContext:
    """Tests for NetworkContext.from_name."""

    def test_hardhat_is_local_31337(self):
        """hardhat has no table id of its own and maps to the local chain id."""
        network = NetworkContext.from_name("hardhat", NetworkTable())
        assert network.id == "31337"
        assert network.is_local

    def test_localhost_is_local(self):
        """localhost resolves through the table to 31337."""
        network = NetworkContext.from_name("localhost", NetworkTable())
        assert network.id == "31337"
        assert network.is_local

    def test_rinkeby_is_live(self):
        """rinkeby resolves to chain id 4 and is not local."""
        network = NetworkContext.from_name("rinkeby", NetworkTable())
        assert network.id == "4"
        assert not network.is_local

    def test_unknown_live_name_fails(self):
        """A live name with no table entry raises UnknownNetwork."""
        with pytest.raises(UnknownNetworkException):
            NetworkContext.from_name("goerli", NetworkTable())

    def test_explicit_chain_id(self):
        """An explicit chain id wins over the table lookup."""
        network = NetworkContext.from_name("goerli", NetworkTable(), chain_id="5")
        assert network.id == "5"
        assert not network.is_local


class TestLocalResolution:
    """Tests for resolving local networks."""

    def test_addresses_from_artifacts(self, resolver, mock_store, local_network):
        """Local addresses come from the mock artifacts."""
        env = resolver.resolve(local_network, mock_store)

        assert env.funding_token_address == LINK_ADDR
        assert env.oracle_service_address == VRF_ADDR
        assert env.callback_key == KEY_HASH
        assert env.request_fee == FEE
        assert env.fund_amount == FUND_AMOUNT

    def test_missing_mock_when_required(self, resolver, local_network):
        """A required address whose mock is not deployed raises MissingArtifact."""
        with pytest.raises(MissingArtifactException) as exc_info:
            resolver.resolve(local_network, ArtifactStore(), required={"funding_token_address"})
        assert exc_info.value.name == "LinkToken"

    def test_missing_mock_when_not_required(self, resolver, local_network):
        """Optional addresses are simply left unset before mocks exist."""
        env = resolver.resolve(local_network, ArtifactStore())
        assert env.funding_token_address is None
        assert env.oracle_service_address is None
        assert env.fund_amount == FUND_AMOUNT

    def test_unknown_local_chain_uses_default_entry(self, resolver, mock_store):
        """A local chain id with no entry falls back to the default entry."""
        network = NetworkContext(id="1337", name="hardhat", is_local=True)
        store = ArtifactStore()
        store.save(make_artifact("LinkToken", address=LINK_ADDR, network="1337"))

        env = resolver.resolve(network, store, required={"funding_token_address", "fund_amount"})
        assert env.funding_token_address == LINK_ADDR
        assert env.fund_amount == FUND_AMOUNT

    def test_artifacts_are_scoped_by_network(self, resolver, mock_store):
        """Mocks on 31337 are invisible to another local chain id."""
        network = NetworkContext(id="1337", name="hardhat", is_local=True)
        with pytest.raises(MissingArtifactException):
            resolver.resolve(network, mock_store, required={"oracle_service_address"})


class TestLiveResolution:
    """Tests for resolving live networks."""

    def test_addresses_from_table(self, resolver, live_network):
        """Live addresses come from the static table, not artifacts."""
        env = resolver.resolve(live_network, ArtifactStore())

        assert env.funding_token_address == RINKEBY_LINK
        assert env.oracle_service_address == RINKEBY_VRF
        assert env.callback_key == KEY_HASH
        assert env.request_fee == FEE
        assert env.fund_amount == FUND_AMOUNT

    def test_live_ignores_mock_artifacts(self, resolver, live_network):
        """Artifacts named like mocks never override live table addresses."""
        store = ArtifactStore()
        store.save(make_artifact("LinkToken", address=LINK_ADDR, network="4"))
        env = resolver.resolve(live_network, store)
        assert env.funding_token_address == RINKEBY_LINK

    def test_unknown_live_network(self, resolver):
        """A live network with no table entry raises UnknownNetwork."""
        network = NetworkContext(id="5", name="goerli", is_local=False)
        with pytest.raises(UnknownNetworkException):
            resolver.resolve(network, ArtifactStore())

    def test_missing_required_field(self, live_network):
        """A required field absent from the table raises MissingConfigField."""
        table = NetworkTable()
        table.entries["4"] = NetworkEntry(name="rinkeby", link_token=RINKEBY_LINK)
        resolver = EnvironmentResolver(table)

        with pytest.raises(MissingConfigFieldException) as exc_info:
            resolver.resolve(live_network, ArtifactStore(), required={"oracle_service_address"})
        assert exc_info.value.field_name == "oracle_service_address"

    def test_unknown_field_name(self, resolver, live_network):
        """Asking for a field EnvironmentConfig does not have is a programming error."""
        with pytest.raises(ValueError):
            resolver.resolve(live_network, ArtifactStore(), required={"gas_price"})


class TestStaticCheck:
    """Tests for check_static, the table-only check run before any step."""

    def test_live_address_gap(self, live_network):
        table = NetworkTable()
        table.entries["4"] = NetworkEntry(name="rinkeby", link_token=RINKEBY_LINK)
        resolver = EnvironmentResolver(table)

        resolver.check_static(live_network, {"funding_token_address", "fund_amount"})
        with pytest.raises(MissingConfigFieldException) as exc_info:
            resolver.check_static(live_network, {"oracle_service_address"})
        assert exc_info.value.field_name == "oracle_service_address"

    def test_local_addresses_not_checked(self, resolver, local_network):
        """Mock addresses do not exist before the mocks step and are skipped."""
        resolver.check_static(local_network, {"funding_token_address", "oracle_service_address"})

    def test_local_fee_gap(self, local_network):
        table = NetworkTable()
        table.entries["31337"] = NetworkEntry(name="localhost", fee=None)
        resolver = EnvironmentResolver(table)

        with pytest.raises(MissingConfigFieldException) as exc_info:
            resolver.check_static(local_network, {"request_fee"})
        assert exc_info.value.field_name == "request_fee"

    def test_unknown_live_network(self, resolver):
        with pytest.raises(UnknownNetworkException):
            resolver.check_static(NetworkContext(id="5", name="goerli", is_local=False))


class TestFundAmount:
    """Tests for NetworkTable.fund_amount_for."""

    def test_local_chain_amount(self):
        """31337 funds 1 LINK."""
        assert NetworkTable().fund_amount_for("31337") == 10 ** 18

    def test_unknown_id_falls_back_to_default(self):
        """An unknown id uses the default entry's amount."""
        table = NetworkTable.from_dict({
            "entries": {"default": {"name": "hardhat", "fund_amount": str(5 * 10 ** 17)}},
        })
        assert table.fund_amount_for("999") == 5 * 10 ** 17
        assert table.fund_amount_for("31337") == 10 ** 18

    def test_default_is_never_a_network(self):
        """The default entry is not returned by id or name lookup."""
        table = NetworkTable()
        assert table.get("default") is None
        assert table.network_id_for_name("hardhat") is None
        assert table.network_id_for_name("rinkeby") == "4"
