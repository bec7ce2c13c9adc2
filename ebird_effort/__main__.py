from ebird_effort.analyze import main

main()
