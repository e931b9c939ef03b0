# MIT License
# Copyright (c) 2025 Hashborn

import argparse
import json
import logging
import os
import sys
from typing import Optional

from .keystore import KeyStore, KEYSTORE_DIR
from ..protocol.config.params import CURRENT_NETWORK, NETWORK_ENV_VAR, NetworkConfig, get_network
from ..protocol.crypto.addresses import normalize_address
from ..protocol.crypto.hash import eth_signed_message_hash
from ..protocol.crypto.keys import sign
from ..protocol.types.common import ProtocolError, ValidationOutcome
from ..protocol.types.user_op import PackedUserOperation
from ..account.user_ops import sign_user_op
from ..account.verifier import recover_signer, validate_signature

logger = logging.getLogger(__name__)

def get_network_config(args) -> NetworkConfig:
    name = args.network or os.environ.get(NETWORK_ENV_VAR)
    return get_network(name) if name else CURRENT_NETWORK

def get_keystore(args) -> KeyStore:
    return KeyStore(args.keystore or KEYSTORE_DIR)

def parse_hex(value: str, length: Optional[int] = None) -> bytes:
    raw = bytes.fromhex(value[2:] if value.startswith("0x") else value)
    if length is not None and len(raw) != length:
        raise ValueError(f"expected {length} bytes, got {len(raw)}")
    return raw

def load_user_op(path: str) -> PackedUserOperation:
    with open(path, "r") as f:
        return PackedUserOperation.from_rpc(json.load(f))

# --- Keys Commands ---
def cmd_keys_add(args):
    try:
        key = get_keystore(args).create_key(args.name)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)
    print(f"Key '{args.name}' created.")
    print(f"Address: {key['address']}")

def cmd_keys_import(args):
    try:
        key = get_keystore(args).import_key(args.name, args.private_key)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)
    print(f"Key '{args.name}' imported.")
    print(f"Address: {key['address']}")

def cmd_keys_list(args):
    keys = get_keystore(args).list_keys()
    if not keys:
        print("No keys found.")
        return

    print(f"{'Name':<15} {'Address':<45}")
    print("-" * 60)
    for k in keys:
        print(f"{k['name']:<15} {k['address']:<45}")

def cmd_keys_show(args):
    key = get_keystore(args).get_key(args.name)
    if not key:
        print(f"Key '{args.name}' not found.")
        sys.exit(1)
    print(json.dumps({k: v for k, v in key.items() if k != 'private_key'}, indent=2))

# --- Config Commands ---
def cmd_config_show(args):
    print(json.dumps(get_network_config(args).to_dict(), indent=2))

# --- User Operation Commands ---
def cmd_userop_hash(args):
    config = get_network_config(args)
    op = load_user_op(args.file)
    print("0x" + op.hash(config.entry_point, config.chain_id).hex())

def cmd_userop_sign(args):
    config = get_network_config(args)
    try:
        priv = get_keystore(args).get_private_key(args.from_name)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)
    signed = sign_user_op(load_user_op(args.file), priv, config.entry_point, config.chain_id)
    output = json.dumps(signed.to_rpc(), indent=2)
    if args.out:
        with open(args.out, "w") as f:
            f.write(output)
        print(f"Signed user operation written to {args.out}")
    else:
        print(output)

def cmd_userop_verify(args):
    config = get_network_config(args)
    op = load_user_op(args.file)
    user_op_hash = op.hash(config.entry_point, config.chain_id)
    outcome = validate_signature(op, user_op_hash, normalize_address(args.owner))
    print(outcome.name)
    if outcome is not ValidationOutcome.SUCCESS:
        sys.exit(1)

# --- Digest Commands ---
def cmd_digest_sign(args):
    try:
        priv = get_keystore(args).get_private_key(args.from_name)
        digest = parse_hex(args.digest, 32)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)
    print("0x" + sign(eth_signed_message_hash(digest), priv).hex())

def cmd_digest_recover(args):
    try:
        digest = parse_hex(args.digest, 32)
        signature = parse_hex(args.signature)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)
    signer = recover_signer(digest, signature)
    if signer is None:
        print("Signature does not recover to any address.")
        sys.exit(1)
    print(signer)

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="minimalaccount", description="Minimal account tooling")
    parser.add_argument("--network", help=f"Network name (default: ${NETWORK_ENV_VAR} or local)")
    parser.add_argument("--keystore", help=f"Key store directory (default: {KEYSTORE_DIR})")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Sub-commands")

    # keys
    p_keys = subparsers.add_parser("keys", help="Manage keys")
    sp_keys = p_keys.add_subparsers(dest="subcommand")

    pk_add = sp_keys.add_parser("add", help="Create new key")
    pk_add.add_argument("name", help="Key name")
    pk_add.set_defaults(func=cmd_keys_add)

    pk_imp = sp_keys.add_parser("import", help="Import private key")
    pk_imp.add_argument("name", help="Key name")
    pk_imp.add_argument("--private-key", required=True, help="Hex private key")
    pk_imp.set_defaults(func=cmd_keys_import)

    pk_list = sp_keys.add_parser("list", help="List keys")
    pk_list.set_defaults(func=cmd_keys_list)

    pk_show = sp_keys.add_parser("show", help="Show key details")
    pk_show.add_argument("name", help="Key name")
    pk_show.set_defaults(func=cmd_keys_show)

    # config
    p_config = subparsers.add_parser("config", help="Network configuration")
    sp_config = p_config.add_subparsers(dest="subcommand")
    pc_show = sp_config.add_parser("show", help="Show network parameters")
    pc_show.set_defaults(func=cmd_config_show)

    # userop
    p_userop = subparsers.add_parser("userop", help="Hash, sign and verify user operations")
    sp_userop = p_userop.add_subparsers(dest="subcommand")

    pu_hash = sp_userop.add_parser("hash", help="Print the request digest of a user operation")
    pu_hash.add_argument("--file", required=True, help="User operation JSON (RPC field names)")
    pu_hash.set_defaults(func=cmd_userop_hash)

    pu_sign = sp_userop.add_parser("sign", help="Sign a user operation")
    pu_sign.add_argument("--file", required=True, help="User operation JSON (RPC field names)")
    pu_sign.add_argument("--from", dest="from_name", required=True, help="Owner key name")
    pu_sign.add_argument("--out", help="Write the signed operation here instead of stdout")
    pu_sign.set_defaults(func=cmd_userop_sign)

    pu_verify = sp_userop.add_parser("verify", help="Check a user operation signature against an owner")
    pu_verify.add_argument("--file", required=True, help="User operation JSON (RPC field names)")
    pu_verify.add_argument("--owner", required=True, help="Owner address")
    pu_verify.set_defaults(func=cmd_userop_verify)

    # digest
    p_digest = subparsers.add_parser("digest", help="Sign and recover personal-message digests")
    sp_digest = p_digest.add_subparsers(dest="subcommand")

    pd_sign = sp_digest.add_parser("sign", help="Sign a 32-byte digest")
    pd_sign.add_argument("digest", help="Hex digest")
    pd_sign.add_argument("--from", dest="from_name", required=True, help="Key name")
    pd_sign.set_defaults(func=cmd_digest_sign)

    pd_recover = sp_digest.add_parser("recover", help="Recover the signer of a digest")
    pd_recover.add_argument("digest", help="Hex digest")
    pd_recover.add_argument("signature", help="Hex 65-byte signature")
    pd_recover.set_defaults(func=cmd_digest_recover)

    return parser

def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    try:
        args.func(args)
    except (ProtocolError, ValueError, OSError) as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}")
        sys.exit(1)

if __name__ == "__main__":
    main()
