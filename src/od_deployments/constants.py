"""Configuration constants for od-deployments library."""

# Supported networks. Registry paths are relative to the project root.
NETWORK_CONFIG = {
    "anvil": {
        "chain_id": 31337,
        "chain_name": "Anvil",
        "container_name": "AnvilContracts",
        "solidity_version": "0.8.20",
        "registry_source": "script/anvil/AnvilContracts.t.sol",
        "registry_json": "deployments/anvil/contracts.json",
        "default_rpc_env": "ANVIL_RPC",
    },
    "sepolia": {
        "chain_id": 421614,
        "chain_name": "Arbitrum Sepolia",
        "container_name": "SepoliaContracts",
        "solidity_version": "0.8.20",
        "registry_source": "script/SepoliaContracts.s.sol",
        "registry_json": "deployments/sepolia/contracts.json",
        "default_rpc_env": "ARB_SEPOLIA_RPC",
    },
    "mainnet": {
        "chain_id": 42161,
        "chain_name": "Arbitrum One",
        "container_name": "MainnetContracts",
        "solidity_version": "0.8.20",
        "registry_source": "script/MainnetContracts.s.sol",
        "registry_json": "deployments/mainnet/contracts.json",
        "default_rpc_env": "ARB_MAINNET_RPC",
    },
}

BROADCAST_LOG_NAME = "run-latest.json"
SDK_ADDRESSES_NAME = "sdk-addresses.json"

# Solidity declaration shape used by the source-text registry
DECLARATION_PREFIX = "address public"
IDENTIFIER_SUFFIX = "_Address"

CREATE = "CREATE"

# Token deployments renamed by appending their upper-cased symbol argument
TOKEN_SYMBOL_CONTRACTS = ("MintableERC20", "MintableVoteERC20")
TOKEN_SYMBOL_ARG_INDEX = 1

# Singleton deployments renamed to their protocol-level alias
CONTRACT_ALIASES = {
    "OpenDollarGovernance": "ProtocolToken",
    "OpenDollar": "SystemCoin",
}

# Factories invoked once per collateral type; the first argument is the type
DISCRIMINATED_FACTORIES = ("CollateralAuctionHouseFactory", "CollateralJoinFactory")

# Factories with no natural discriminator; children get the transaction index
INDEXED_FACTORIES = ("DelayedOracleFactory", "DenominatedOracleFactory")
INDEXED_FACTORY_MARKER = "RelayerFactory"

MULTICALL_ADDRESS = "0xcA11bde05977b3631167028862bE2a173976CA11"
ETH_ADDRESS = "0xEe01c0CD76354C383B8c7B4e65EA88D00B06f36f"

# SDK address book: role key -> registry name (None means a fixed address)
SDK_ADDRESS_KEYS = {
    "MULTICALL": None,
    "ETH": None,
    "GEB_SYSTEM_COIN": "SystemCoin",
    "GEB_PROTOCOL_TOKEN": "ProtocolToken",
    "GEB_SAFE_ENGINE": "SAFEEngine",
    "GEB_ORACLE_RELAYER": "OracleRelayer",
    "GEB_SURPLUS_AUCTION_HOUSE": "SurplusAuctionHouse",
    "GEB_DEBT_AUCTION_HOUSE": "DebtAuctionHouse",
    "GEB_COLLATERAL_AUCTION_HOUSE_FACTORY": "CollateralAuctionHouseFactory",
    "GEB_ACCOUNTING_ENGINE": "AccountingEngine",
    "GEB_LIQUIDATION_ENGINE": "LiquidationEngine",
    "GEB_COIN_JOIN": "CoinJoin",
    "GEB_COLLATERAL_JOIN_FACTORY": "CollateralJoinFactory",
    "GEB_TAX_COLLECTOR": "TaxCollector",
    "GEB_STABILITY_FEE_TREASURY": "StabilityFeeTreasury",
    "GEB_GLOBAL_SETTLEMENT": "GlobalSettlement",
    "GEB_POST_SETTLEMENT_SURPLUS_AUCTION_HOUSE": "PostSettlementSurplusAuctionHouse",
    "GEB_POST_SETTLEMENT_SURPLUS_AUCTIONEER": "SettlementSurplusAuctioneer",
    "GEB_RRFM_SETTER": "PIDRateSetter",
    "GEB_RRFM_CALCULATOR": "PIDController",
    "SAFE_MANAGER": "ODSafeManager",
    "PROXY_FACTORY": "Vault721",
    "PROXY_REGISTRY": "Vault721",
    "PROXY_BASIC_ACTIONS": "BasicActions",
    "PROXY_DEBT_AUCTION_ACTIONS": "DebtBidActions",
    "PROXY_SURPLUS_AUCTION_ACTIONS": "SurplusBidActions",
    "PROXY_COLLATERAL_AUCTION_ACTIONS": "CollateralBidActions",
    "PROXY_POST_SETTLEMENT_SURPLUS_AUCTION_ACTIONS": "PostSettlementSurplusBidActions",
    "PROXY_GLOBAL_SETTLEMENT_ACTIONS": "GlobalSettlementActions",
    "PROXY_REWARDED_ACTIONS": "RewardedActions",
    "JOB_ACCOUNTING": "AccountingJob",
    "JOB_LIQUIDATION": "LiquidationJob",
    "JOB_ORACLES": "OracleJob",
}

# Tokens that are not collateral but are listed in the SDK collateral table
SDK_PROTOCOL_TOKENS = {
    "OD": "SystemCoin",
    "ODG": "ProtocolToken",
}

GOV_INPUT_DIR = "gov-input"
GENERATE_PROPOSAL_DIR = "script/testScripts/gov/GenerateProposal"

RPC_TIMEOUT = 30
