from devsync_cli.main import main

main()
