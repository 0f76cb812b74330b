from unittest import IsolatedAsyncioTestCase, TestCase

from evm_workload.errors import FeeUnavailableError
from evm_workload.fees import FeeParameters, compute_fee_parameters
from evm_workload.rpc import BlockHeader

from fakes import ADDRESS_0, FakeChainClient


class FeeParametersTest(TestCase):
    def test_fee_cap_covers_doubled_base_fee(self):
        for base_fee, tip in [(0, 0), (1, 0), (7, 3), (30_000_000_000, 2_000_000_000), (10**20, 1)]:
            fees = FeeParameters.from_chain_state(base_fee, tip, 21_000)
            self.assertGreaterEqual(fees.fee_cap, 2 * base_fee + fees.tip_cap)
            self.assertEqual(fees.tip_cap, tip)

    def test_gas_limit_adds_buffer(self):
        fees = FeeParameters.from_chain_state(10, 1, 21_000)
        self.assertEqual(fees.gas_limit, 22_000)
        fees = FeeParameters.from_chain_state(10, 1, 21_000, gas_buffer=0)
        self.assertEqual(fees.gas_limit, 21_000)

    def test_tx_fields(self):
        fees = FeeParameters.from_chain_state(10, 2, 21_000)
        self.assertEqual(
            fees.as_tx_fields(),
            {"maxPriorityFeePerGas": 2, "maxFeePerGas": 22, "gas": 22_000},
        )


class LegacyChainClient(FakeChainClient):
    async def latest_header(self):
        return BlockHeader(number=7, base_fee=None)


class ComputeFeeParametersTest(IsolatedAsyncioTestCase):
    async def test_reads_chain_state(self):
        client = FakeChainClient(base_fee=1_000, tip=50, gas=21_000)
        fees = await compute_fee_parameters(client, ADDRESS_0)
        self.assertEqual(fees, FeeParameters(tip_cap=50, fee_cap=2_050, gas_limit=22_000, base_fee=1_000))

    async def test_missing_base_fee(self):
        with self.assertRaises(FeeUnavailableError):
            await compute_fee_parameters(LegacyChainClient(), ADDRESS_0)

    async def test_gas_estimation_failure(self):
        with self.assertRaises(FeeUnavailableError):
            await compute_fee_parameters(FakeChainClient(fail_gas=True), ADDRESS_0)
