#!/usr/bin/env python3
"""
Entity Table Setup

Creates the wide entity table (PK/SK plus the secondary indexes) against the
endpoint configured in the environment, e.g. DynamoDB Local:

    DYNAMODB_ENDPOINT_URL=http://localhost:8000 python scripts/setup_table.py
    python scripts/setup_table.py --recreate
"""

import sys
from pathlib import Path

import boto3
from botocore.exceptions import ClientError

# Allow running from a source checkout without installing the package
sys.path.insert(0, str(Path(__file__).parent.parent))

from prenup_store import DynamoDBConfig
from prenup_store.core.table_schema import SECONDARY_INDEXES, entity_table_definition


def get_client(config: DynamoDBConfig):
    client_kwargs = {'region_name': config.region_name}
    if config.endpoint_url:
        client_kwargs['endpoint_url'] = config.endpoint_url
    if config.aws_access_key_id:
        client_kwargs['aws_access_key_id'] = config.aws_access_key_id
        client_kwargs['aws_secret_access_key'] = config.aws_secret_access_key
    return boto3.client('dynamodb', **client_kwargs)


def table_exists(client, table_name: str) -> bool:
    try:
        client.describe_table(TableName=table_name)
        return True
    except ClientError as e:
        if e.response['Error']['Code'] == 'ResourceNotFoundException':
            return False
        raise


def delete_table(client, table_name: str) -> None:
    print(f"🗑️  Deleting existing table {table_name}...")
    client.delete_table(TableName=table_name)
    client.get_waiter('table_not_exists').wait(TableName=table_name)


def create_table(client, table_name: str) -> None:
    print(f"📦 Creating table {table_name}...")
    client.create_table(**entity_table_definition(table_name))

    print("⏳ Waiting for table to become active...")
    client.get_waiter('table_exists').wait(TableName=table_name)

    print(f"✅ Table {table_name} created with GSIs:")
    for index_name, hash_key, range_key in SECONDARY_INDEXES:
        key_desc = f"{hash_key} + {range_key}" if range_key else hash_key
        print(f"  - {index_name} ({key_desc})")


def list_tables(client) -> None:
    print("\nCurrent DynamoDB tables:")
    for name in client.list_tables().get('TableNames', []):
        print(f"  - {name}")


def main():
    """Main entry point."""
    recreate = '--recreate' in sys.argv[1:]

    config = DynamoDBConfig.from_env()
    table_name = config.get_table_name()

    print("🚀 Setting up the entity table\n")
    print("Configuration:")
    print(f"  Region: {config.region_name}")
    print(f"  Endpoint: {config.endpoint_url or 'AWS default'}")
    print(f"  Table Name: {table_name}\n")

    client = get_client(config)

    try:
        if table_exists(client, table_name):
            if not recreate:
                print(f"✅ Table {table_name} already exists (use --recreate to drop it)")
                list_tables(client)
                return 0
            delete_table(client, table_name)

        create_table(client, table_name)
        list_tables(client)
    except ClientError as e:
        print(f"❌ Error setting up table: {e}")
        return 1

    print("\n✅ DynamoDB setup completed successfully!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
