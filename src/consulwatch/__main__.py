from consulwatch._cli import main

main()
