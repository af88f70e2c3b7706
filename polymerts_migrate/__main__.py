from polymerts_migrate.cli.polymerts_migrate import main

main()
