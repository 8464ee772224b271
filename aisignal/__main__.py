from aisignal.main import main

main()
