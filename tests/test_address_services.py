import pytest

from tsender.services.address import is_valid_evm_address, normalize_address

ANVIL_DEPLOYER = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
ANVIL_TSENDER = "0x5FbDB2315678afecb367f032d93F642f64180aa3"


def test_address_validation_lowercase_and_uppercase():
    assert is_valid_evm_address("0x" + "ab" * 20) is True
    assert is_valid_evm_address("0x" + "AB" * 20) is True


def test_address_validation_checksummed():
    assert is_valid_evm_address(ANVIL_DEPLOYER) is True
    assert is_valid_evm_address(ANVIL_TSENDER) is True


def test_address_validation_bad_checksum():
    # F -> f breaks the EIP-55 checksum while staying mixed case
    assert is_valid_evm_address("0x5fbDB2315678afecb367f032d93F642f64180aa3") is False


def test_address_validation_malformed():
    assert is_valid_evm_address("") is False
    assert is_valid_evm_address("0x123") is False
    assert is_valid_evm_address("ab" * 20) is False  # missing 0x prefix
    assert is_valid_evm_address("0x" + "zz" * 20) is False
    assert is_valid_evm_address(ANVIL_TSENDER + "00") is False


def test_normalize_address_checksums():
    assert normalize_address(ANVIL_TSENDER.lower()) == ANVIL_TSENDER
    assert normalize_address(f"  {ANVIL_DEPLOYER.lower()}  ") == ANVIL_DEPLOYER


def test_normalize_address_rejects_invalid():
    with pytest.raises(ValueError):
        normalize_address("0xnot-an-address")
