import click
from eth_utils import to_checksum_address


class ChecksumAddress(click.ParamType):
    name = "checksum_address"

    def convert(self, value, param, ctx):
        try:
            value = to_checksum_address(value=value)
        except ValueError:
            self.fail(f"Invalid ethereum address: {value}", param, ctx)
        else:
            return value


class DependencyOverride(click.ParamType):
    """A NAME=ADDRESS pair that replaces the network default for a plan dependency."""

    name = "dependency_override"

    def convert(self, value, param, ctx):
        if isinstance(value, tuple):
            return value
        name, separator, address = value.partition("=")
        if not separator or not name:
            self.fail(f"{value} is not of the form NAME=ADDRESS", param, ctx)
        address = ChecksumAddress().convert(address, param, ctx)
        return name.strip(), address


class ConstantOverride(click.ParamType):
    """A NAME=VALUE pair that replaces the value of a plan constant."""

    name = "constant_override"

    def convert(self, value, param, ctx):
        if isinstance(value, tuple):
            return value
        name, separator, constant_value = value.partition("=")
        if not separator or not name.strip() or not constant_value.strip():
            self.fail(f"{value} is not of the form NAME=VALUE", param, ctx)
        return name.strip(), constant_value.strip()
