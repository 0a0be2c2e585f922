from kinesis_consumer.cli import cli

cli()
