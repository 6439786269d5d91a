from dg.cli import main

main()
