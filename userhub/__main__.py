from userhub.main import main

main()
