from pathlib import Path

import deployment

#
# Filesystem
#

DEPLOYMENT_DIR = Path(deployment.__file__).parent
PLANS_DIR = DEPLOYMENT_DIR / "plans"
ARTIFACTS_DIR = DEPLOYMENT_DIR / "artifacts"

#
# Networks
#

LOCAL = "ethereum:local"
GOERLI = "ethereum:goerli"
SEPOLIA = "ethereum:sepolia"
ETH_MAINNET = "ethereum:mainnet"
POLYGON_MAINNET = "polygon:mainnet"
BASE_MAINNET = "base:mainnet"

SUPPORTED_NETWORKS = [LOCAL, GOERLI, SEPOLIA, ETH_MAINNET, POLYGON_MAINNET, BASE_MAINNET]

# network names used by the hardhat toolchain that compiles and verifies the contracts
HARDHAT_NETWORK_NAMES = {
    LOCAL: "hardhat",
    GOERLI: "goerli",
    SEPOLIA: "sepolia",
    ETH_MAINNET: "ethmain",
    POLYGON_MAINNET: "polygonmain",
    BASE_MAINNET: "base",
}

#
# Dependency resolution
#

# network value that selects a throwaway mock deployment instead of a fixed address
MOCK_INDICATOR = "mock"

HUNT_TOKEN_MAINNET = "0x9AAb071B4129B083B01cB5A0Cb513Ce7ecA26fa5"
HUNT_TOKEN_STAGING = "0x4bF67e5C9baD43DD89dbe8fCAD3c213C868fe881"

TOWNHALL_MAINNET = "0xb09A1410cF4C49F92482F5cd2CbF19b638907193"
TOWNHALL_STAGING = "0x794B9BC9c7316487D9fb31B6eEB8b9b57d958c3D"

# Base deployments used by the Grant and MintPad contracts
HUNT_TOKEN_BASE = "0x37f0c2915CeCC7e977183B8543Fc0864d03E064C"
MCV2_BOND_BASE = "0xc5a076cad94176c2996B32d8466Be1cE757FAa27"

#
# Reporting
#

VERIFY_COMMAND_TEMPLATE = "npx hardhat verify --network {network} {address}"
GWEI = 10**9

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
