from whocan.cli.main import main

main()
