# src/slashkeeper/cli/cli.py
import argparse
import json
import random
import sys
from typing import List, Optional

import uvicorn

from ..api.server import create_app
from ..config.node_config import NodeConfig
from ..consensus.block_processor import BlockProcessor
from ..consensus.hooks import SlashingHooks
from ..consensus.liveness import Vote
from ..consensus.staking import InMemoryStaking
from ..exceptions import SlashingError
from ..genesis import export_genesis, init_genesis, load_params, read_genesis_file, write_genesis_file
from ..monitoring.logging_config import LogConfig
from ..monitoring.metrics import SlashingMetrics
from ..params import SlashingParams
from ..storage.database import Database
from ..storage.signing_info import SigningInfoStore
from ..utils.config import Config
from ..utils.logger import get_logger

logger = get_logger("slashkeeper.cli")

class CLI:
    def __init__(self):
        self.node_config: Optional[NodeConfig] = None
        self.db: Optional[Database] = None

    def main(self, args: List[str]) -> int:
        parser = self.create_parser()
        args = parser.parse_args(args)

        if not hasattr(args, 'func'):
            parser.print_help()
            return 1

        self.node_config = NodeConfig(args.config)
        try:
            args.func(args)
        except SlashingError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        finally:
            if self.db:
                self.db.close()
        return 0

    def create_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(description='slashkeeper CLI')
        parser.add_argument('--config', default=Config.DEFAULT_CONFIG_PATH, help='Node config file')
        parser.add_argument('--db', help='Database path (overrides config)')
        subparsers = parser.add_subparsers(title='commands', dest='command')

        params = subparsers.add_parser('params', help='Show slashing parameters')
        params.set_defaults(func=self.show_params)

        info = subparsers.add_parser('signing-info', help='Show one validator signing info')
        info.add_argument('address', help='Validator consensus address')
        info.set_defaults(func=self.show_signing_info)

        infos = subparsers.add_parser('signing-infos', help='List all signing infos')
        infos.set_defaults(func=self.list_signing_infos)

        export = subparsers.add_parser('export-genesis', help='Write slashing state to a JSON file')
        export.add_argument('output', help='Output file')
        export.set_defaults(func=self.export_genesis)

        load = subparsers.add_parser('import-genesis', help='Load slashing state from a JSON file')
        load.add_argument('input', help='Genesis file')
        load.set_defaults(func=self.import_genesis)

        serve = subparsers.add_parser('serve', help='Run the query API')
        serve.add_argument('--host', help='API host')
        serve.add_argument('--port', type=int, help='API port')
        serve.set_defaults(func=self.serve)

        simulate = subparsers.add_parser('simulate', help='Run liveness over synthetic blocks')
        simulate.add_argument('--validators', type=int, default=4, help='Number of validators')
        simulate.add_argument('--blocks', type=int, default=1000, help='Blocks to process')
        simulate.add_argument('--miss-rate', type=float, default=0.5,
                              help='Chance the last validator misses a block')
        simulate.add_argument('--seed', type=int, default=0, help='Random seed')
        simulate.add_argument('--metrics-port', type=int, help='Expose Prometheus metrics')
        simulate.set_defaults(func=self.simulate)

        return parser

    def _open_db(self, args) -> Database:
        path = args.db or self.node_config.get("storage.db_path", Config.DEFAULT_DB_PATH)
        self.db = Database(path)
        return self.db

    def _params(self, db: Database) -> SlashingParams:
        return load_params(db) or self.node_config.slashing_params()

    def show_params(self, args):
        print(json.dumps(self._params(self._open_db(args)).to_dict(), indent=2))

    def show_signing_info(self, args):
        info = SigningInfoStore(self._open_db(args)).get_or_none(args.address)
        if info is None:
            print(f"No signing info for {args.address}")
            return
        print(json.dumps(info.to_dict(), indent=2))

    def list_signing_infos(self, args):
        for info in SigningInfoStore(self._open_db(args)).iterate():
            print(json.dumps(info.to_dict()))

    def export_genesis(self, args):
        db = self._open_db(args)
        state = export_genesis(SigningInfoStore(db), self._params(db))
        write_genesis_file(args.output, state)
        print(f"Exported {len(state['signing_infos'])} signing infos to {args.output}")

    def import_genesis(self, args):
        store = SigningInfoStore(self._open_db(args))
        init_genesis(store, read_genesis_file(args.input))
        print(f"Imported genesis from {args.input}")

    def serve(self, args):
        LogConfig(
            log_dir=self.node_config.get("monitoring.log_dir", "logs"),
            console_level=self.node_config.get("monitoring.log_level", "INFO")
        ).setup_logging()
        db = self._open_db(args)
        host = args.host or self.node_config.get("api.host", Config.API_HOST)
        port = args.port or self.node_config.get("api.port", Config.API_PORT)
        logger.info(f"Serving slashing queries on {host}:{port}")
        uvicorn.run(create_app(db, self._params(db)), host=host, port=port)

    def simulate(self, args):
        """Every validator signs except the last, which misses at --miss-rate"""
        LogConfig(
            log_dir=self.node_config.get("monitoring.log_dir", "logs"),
            console_level=self.node_config.get("monitoring.log_level", "INFO")
        ).setup_logging()
        db = self._open_db(args)
        params = self._params(db)
        metrics = SlashingMetrics()
        if args.metrics_port:
            metrics.start_server(args.metrics_port)

        staking = InMemoryStaking()
        hooks = SlashingHooks(SigningInfoStore(db), staking)
        addresses = [f"validator{i}" for i in range(args.validators)]
        for address in addresses:
            staking.add_validator(address, 1_000_000)
            hooks.after_validator_bonded(address, 0)
        staking.record_historical_shares(0)

        processor = BlockProcessor(db, staking, params, metrics)
        rng = random.Random(args.seed)
        block_time = 0
        slashes = 0
        for height in range(1, args.blocks + 1):
            block_time += 5
            staking.record_historical_shares(height)
            votes = [
                Vote(
                    validator_address=address,
                    power=staking.total_tokens(address),
                    signed=address != addresses[-1] or rng.random() >= args.miss_rate
                )
                for address in addresses
                if not staking.is_jailed(address)
            ]
            result = processor.process_block(height, block_time, votes)
            slashes += len(result.events)

        print(f"Processed {args.blocks} blocks, {slashes} slash event(s), "
              f"{staking.total_burned} tokens burned")

def main():
    sys.exit(CLI().main(sys.argv[1:]))

if __name__ == "__main__":
    main()
