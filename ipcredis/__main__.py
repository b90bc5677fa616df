from ipcredis.cli import cli

def main():
    """Main entry point for ipcredis."""
    cli(obj={})

if __name__ == '__main__':
    main()
